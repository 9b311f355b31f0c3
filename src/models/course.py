"""Course database model."""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import true

from .base import Base, utcnow

CONTENT_TYPES = ("video", "pdf", "text")
ACCESS_TYPES = ("private", "public", "premium")
DIFFICULTIES = ("beginner", "intermediate", "advanced")


class CourseModel(Base):
    __tablename__ = "courses"
    # content_url / content_text pairing with content_type is left to the API layer
    __table_args__ = (
        CheckConstraint(
            "content_type IN ('video', 'pdf', 'text')",
            name="ck_courses_content_type",
        ),
        CheckConstraint(
            "access_type IN ('private', 'public', 'premium')",
            name="ck_courses_access_type",
        ),
        CheckConstraint(
            "difficulty IS NULL OR difficulty IN ('beginner', 'intermediate', 'advanced')",
            name="ck_courses_difficulty",
        ),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    content_type = Column(String, nullable=False)
    content_url = Column(String, nullable=True)
    content_text = Column(Text, nullable=True)
    uploader_id = Column(
        String,
        ForeignKey("profiles.user_id", name="fk_courses_uploader_profiles"),
        index=True,
        nullable=False,
    )
    access_type = Column(
        String, nullable=False, default="public", server_default="public"
    )
    difficulty = Column(String, nullable=True)
    tags = Column(JSON, nullable=True)
    image_url = Column(String, nullable=True)
    is_approved = Column(Boolean, default=True, server_default=true())

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    uploader = relationship("ProfileModel", foreign_keys=[uploader_id])
    # No delete cascade: enrollments are removed explicitly before the course.
    enrollments = relationship(
        "EnrollmentModel", back_populates="course", passive_deletes="all"
    )
