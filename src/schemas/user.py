"""User schema definitions.

This module defines the User data model and the authentication request and
response bodies.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

import pytz
from pydantic import BaseModel, Field


class User(BaseModel):
    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    username: str = Field(description="Login name, unique across users.")
    password_hash: str = Field(description="bcrypt hash of the password.")
    email: Optional[str] = Field(default=None, description="Contact email.")
    create_at: str = Field(
        description="The time when the user was created.",
        default_factory=lambda: datetime.now(pytz.utc).isoformat(),
    )


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6)
    full_name: Optional[str] = Field(
        default=None, description="Display name copied onto the new profile."
    )
    email: Optional[str] = None
    admin_token: Optional[str] = Field(
        default=None,
        description="Registers an admin when it matches ADMIN_TOKEN.",
    )


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    user: Dict[str, Any]
    token: str


class CurrentUserResponse(BaseModel):
    user: Dict[str, Any]
