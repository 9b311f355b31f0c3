"""Profile schema definitions."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["user", "premium", "admin"]


class ProfileStats(BaseModel):
    """Derived usage counters of a profile."""

    completed: int = 0
    enrolled: int = 0
    uploads: int = 0


class Profile(BaseModel):
    id: str
    user_id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Role = "user"
    completed: int = 0
    enrolled: int = 0
    uploads: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    avatar_seed: Optional[str] = Field(
        default=None,
        description="Seed behind the avatar; only filled on the caller's own profile.",
    )

    @property
    def stats(self) -> ProfileStats:
        return ProfileStats(
            completed=self.completed, enrolled=self.enrolled, uploads=self.uploads
        )


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_seed: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Seed for the generated avatar image.",
    )


class UpdateRoleRequest(BaseModel):
    role: Role


class AvatarSeedResponse(BaseModel):
    avatar_seed: str
    avatar_url: str
