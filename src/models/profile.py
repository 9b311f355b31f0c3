"""Profile database model.

One row per user. ``enrolled``, ``completed`` and ``uploads`` are derived
counters maintained by :mod:`core.stats`; application code never writes them.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import Base, utcnow

PROFILE_ROLES = ("user", "premium", "admin")


class ProfileModel(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'premium', 'admin')", name="ck_profiles_role"
        ),
        CheckConstraint("completed >= 0", name="ck_profiles_completed"),
        CheckConstraint("enrolled >= 0", name="ck_profiles_enrolled"),
        CheckConstraint("uploads >= 0", name="ck_profiles_uploads"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String,
        ForeignKey("users.user_id"),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    role = Column(String, nullable=False, default="user", server_default="user")

    completed = Column(Integer, nullable=False, default=0, server_default="0")
    enrolled = Column(Integer, nullable=False, default=0, server_default="0")
    uploads = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user = relationship("UserModel", back_populates="profile")
