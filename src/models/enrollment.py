"""Enrollment (library entry) database model."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import false

from .base import Base, utcnow


class EnrollmentModel(Base):
    __tablename__ = "user_courses"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "course_id",
            name="uq_user_courses_user_course",
        ),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    course_id = Column(
        String, ForeignKey("courses.id"), index=True, nullable=False
    )
    completed = Column(Boolean, nullable=False, default=False, server_default=false())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    added_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    course = relationship("CourseModel", back_populates="enrollments")
