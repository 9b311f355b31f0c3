"""Library (enrollment) and dashboard schema definitions."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from schemas.course import Course
from schemas.profile import ProfileStats


class Enrollment(BaseModel):
    id: str
    user_id: str
    course_id: str
    completed: bool = False
    completed_at: Optional[datetime] = None
    added_at: Optional[datetime] = None


class LibraryEntry(Enrollment):
    course: Optional[Course] = Field(
        default=None,
        description="The enrolled course; None when it is no longer visible.",
    )


class EnrollRequest(BaseModel):
    course_id: str


class UpdateEnrollmentRequest(BaseModel):
    completed: Optional[bool] = Field(
        default=None,
        description="New completion state. Omit to toggle the current one.",
    )


class DashboardResponse(BaseModel):
    stats: ProfileStats
    enrolled: List[LibraryEntry]
    uploaded: List[Course]
