"""User management utilities.

This module provides user management functionality including user storage,
password hashing and the creation of the profile that belongs to each user.
"""

import logging
from typing import Optional

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ValidationError
from models.profile import PROFILE_ROLES, ProfileModel
from models.user import UserModel
from schemas.user import User
from utils.converters import model_to_user, user_to_model

logger = logging.getLogger(__name__)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


class UserAlreadyExistsError(Exception):
    """Exception raised when trying to create a user that already exists."""

    pass


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, bcrypt_rounds: Optional[int] = None):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            bcrypt_rounds: Cost factor for new password hashes. Defaults to
                BCRYPT_ROUNDS.
        """
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds or BCRYPT_ROUNDS

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > _BCRYPT_MAX_BYTES:
            logger.warning(
                "Password exceeds %d bytes (%d bytes), truncating",
                _BCRYPT_MAX_BYTES,
                len(password_bytes),
            )
            password_bytes = password_bytes[:_BCRYPT_MAX_BYTES]

        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def create_user(
        self,
        username: str,
        password: str,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        role: str = "user",
    ) -> User:
        """Create a new user together with its profile.

        The profile is added in the same transaction, so a user never exists
        without exactly one profile.

        Args:
            username: Username for the new user.
            password: Plain text password.
            full_name: Optional display name stored on the profile.
            email: Optional email address.
            role: Profile role ('user', 'premium' or 'admin').

        Returns:
            Created User object.

        Raises:
            UserAlreadyExistsError: If username already exists.
            ValidationError: If role is invalid.
        """
        if role not in PROFILE_ROLES:
            raise ValidationError(
                f"Invalid role: {role}. Must be one of {', '.join(PROFILE_ROLES)}."
            )

        existing = self.db.query(UserModel).filter(UserModel.username == username).first()
        if existing:
            raise UserAlreadyExistsError(f"User '{username}' already exists")

        user = User(
            username=username,
            password_hash=self.hash_password(password),
            email=email,
        )

        # Two concurrent registrations can both pass the check above; the
        # unique constraint on username catches the second one.
        try:
            self.db.add(user_to_model(user))
            self.db.add(
                ProfileModel(user_id=user.user_id, full_name=full_name, role=role)
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "username" in str(e).lower() or "unique" in str(e).lower():
                raise UserAlreadyExistsError(f"User '{username}' already exists") from e
            raise

        logger.info("Created user: %s (role=%s)", username, role)
        return user

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username.

        Args:
            username: Username to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.username == username).first()
        if model:
            return model_to_user(model)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model:
            return model_to_user(model)
        return None

    def get_user_role(self, user_id: str) -> Optional[str]:
        """Role stored on the user's profile, or None without a profile."""
        return (
            self.db.query(ProfileModel.role)
            .filter(ProfileModel.user_id == user_id)
            .scalar()
        )
