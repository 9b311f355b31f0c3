"""Profile management module.

This module handles reading and editing user profiles. The usage counters on
a profile are read-only here; see :mod:`core.stats`.
"""

import logging
import re
import secrets
from typing import List, Optional
from urllib.parse import quote, unquote

from sqlalchemy.orm import Session

from config import AVATAR_BASE_URL
from core import policies
from core.exceptions import PolicyViolationError, ProfileNotFoundError, ValidationError
from models.profile import PROFILE_ROLES, ProfileModel
from schemas.profile import Profile, ProfileStats
from utils.converters import model_to_profile

logger = logging.getLogger(__name__)

_SEED_PATTERN = re.compile(r"seed=([^&]*)")


def avatar_url_for_seed(seed: str) -> str:
    """Deterministic avatar image URL for a seed string."""
    return f"{AVATAR_BASE_URL}?seed={quote(seed, safe='')}"


def avatar_seed_from_url(avatar_url: Optional[str], default: str) -> str:
    """Recover the seed of a generated avatar URL.

    Args:
        avatar_url: Stored avatar URL, possibly None.
        default: Seed to use when the URL carries none (usually the user ID).
    """
    if avatar_url:
        match = _SEED_PATTERN.search(avatar_url)
        if match:
            return unquote(match.group(1))
    return default


def random_avatar_seed() -> str:
    return secrets.token_hex(6)


class ProfileManager:
    """Manages profile operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize ProfileManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _get_model(self, user_id: str) -> ProfileModel:
        model = (
            self.db.query(ProfileModel)
            .filter(ProfileModel.user_id == user_id)
            .first()
        )
        if not model:
            raise ProfileNotFoundError(user_id)
        return model

    def get_profile(self, user_id: str) -> Profile:
        """Get the profile of a user. Profiles are readable by anyone.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        return model_to_profile(self._get_model(user_id))

    def list_profiles(self) -> List[Profile]:
        """List all profiles, newest first."""
        models = self.db.query(ProfileModel).order_by(ProfileModel.created_at.desc()).all()
        return [model_to_profile(m) for m in models]

    def get_stats(self, user_id: str) -> ProfileStats:
        return self.get_profile(user_id).stats

    def update_profile(
        self,
        user_id: str,
        actor_id: Optional[str],
        full_name: Optional[str] = None,
        avatar_seed: Optional[str] = None,
    ) -> Profile:
        """Update display data of a profile.

        Only the owner can update their profile. Fields left as None are
        unchanged.

        Args:
            user_id: Owner of the profile to update.
            actor_id: User performing the update.
            full_name: New display name.
            avatar_seed: Seed of the new generated avatar.

        Returns:
            The updated Profile.

        Raises:
            ProfileNotFoundError: If the profile does not exist.
            PolicyViolationError: If actor is not the owner.
        """
        model = self._get_model(user_id)
        policies.ensure_profile_owner(model, actor_id)
        if avatar_seed is not None and not avatar_seed.strip():
            raise ValidationError("Avatar seed cannot be empty")

        if full_name is not None:
            model.full_name = full_name.strip() or None
        if avatar_seed is not None:
            model.avatar_url = avatar_url_for_seed(avatar_seed.strip())

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Failed to update profile of user %s", user_id)
            raise
        self.db.refresh(model)
        logger.info("Updated profile of user %s", user_id)
        return model_to_profile(model)

    def set_role(self, user_id: str, role: str, actor_role: Optional[str]) -> Profile:
        """Change the role of a profile. Admins only.

        Raises:
            PolicyViolationError: If the actor is not an admin.
            ValidationError: If role is invalid.
            ProfileNotFoundError: If the profile does not exist.
        """
        if actor_role != "admin":
            raise PolicyViolationError("Only admins can change roles")
        if role not in PROFILE_ROLES:
            raise ValidationError(
                f"Invalid role: {role}. Must be one of {', '.join(PROFILE_ROLES)}."
            )
        model = self._get_model(user_id)
        model.role = role
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Failed to set role of user %s", user_id)
            raise
        self.db.refresh(model)
        logger.info("Set role of user %s to %s", user_id, role)
        return model_to_profile(model)

    def current_avatar_seed(self, user_id: str) -> str:
        """Seed behind the user's avatar, defaulting to the user ID."""
        model = self._get_model(user_id)
        return avatar_seed_from_url(model.avatar_url, default=user_id)
