"""User database model.

Login identity for the service. Display data and role live on the
profile created together with the user.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    email = Column(String, nullable=True)
    create_at = Column(String, nullable=False)  # ISO format string

    profile = relationship("ProfileModel", back_populates="user", uselist=False)
