"""Course schema definitions."""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

ContentType = Literal["video", "pdf", "text"]
AccessType = Literal["private", "public", "premium"]
Difficulty = Literal["beginner", "intermediate", "advanced"]


def parse_tags(value: Union[str, List[str], None]) -> Optional[List[str]]:
    """Accept ``"a, b"`` or ``["a", "b"]``; drop blanks; keep order."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else value
    return [str(item).strip() for item in items if str(item).strip()]


class Course(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    content_type: ContentType
    content_url: Optional[str] = None
    content_text: Optional[str] = None
    uploader_id: str
    uploader_name: Optional[str] = None
    access_type: AccessType = "public"
    difficulty: Optional[Difficulty] = None
    tags: List[str] = Field(default_factory=list)
    image_url: str
    is_approved: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    in_library: Optional[bool] = Field(
        default=None,
        description="Whether the course is in the caller's library; None for anonymous callers.",
    )


class CreateCourseRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    content_type: ContentType
    content_url: Optional[str] = None
    content_text: Optional[str] = None
    access_type: AccessType = "public"
    difficulty: Optional[Difficulty] = None
    tags: Optional[List[str]] = None
    image_url: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return parse_tags(value)


class UpdateCourseRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    content_type: Optional[ContentType] = None
    content_url: Optional[str] = None
    content_text: Optional[str] = None
    access_type: Optional[AccessType] = None
    difficulty: Optional[Difficulty] = None
    tags: Optional[List[str]] = None
    image_url: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return parse_tags(value)
