"""Row-level access policies.

Every read and write of profiles, courses and library entries goes through
these predicates. Checks run before anything is added to the session, so a
rejected mutation never reaches the database and never touches any counters.

- Profiles: readable by anyone; inserted and updated only by their owner;
  never deleted.
- Courses: readable when approved and public, when approved and premium for
  premium/admin viewers, or by their uploader regardless of state. Inserted,
  updated and deleted only by the uploader.
- Library entries: read, inserted, updated and deleted only by their owner.
"""

from typing import Optional

from sqlalchemy import and_, or_

from core.exceptions import PolicyViolationError
from models.course import CourseModel
from models.enrollment import EnrollmentModel
from models.profile import ProfileModel

PREMIUM_ROLES = ("premium", "admin")


def course_visibility_clause(viewer_id: Optional[str], viewer_role: Optional[str]):
    """SQL filter selecting the courses a viewer may read.

    Args:
        viewer_id: Authenticated user ID, or None for anonymous viewers.
        viewer_role: Role from the viewer's profile, or None.
    """
    conditions = [
        and_(CourseModel.is_approved.is_(True), CourseModel.access_type == "public")
    ]
    if viewer_role in PREMIUM_ROLES:
        conditions.append(
            and_(
                CourseModel.is_approved.is_(True),
                CourseModel.access_type == "premium",
            )
        )
    if viewer_id:
        conditions.append(CourseModel.uploader_id == viewer_id)
    return or_(*conditions)


def can_view_course(
    course: CourseModel, viewer_id: Optional[str], viewer_role: Optional[str]
) -> bool:
    """Python counterpart of :func:`course_visibility_clause` for a loaded row."""
    if viewer_id and course.uploader_id == viewer_id:
        return True
    if not course.is_approved:
        return False
    if course.access_type == "public":
        return True
    return course.access_type == "premium" and viewer_role in PREMIUM_ROLES


def ensure_self(row_user_id: str, actor_id: Optional[str], action: str) -> None:
    """Inserted rows must name the requester as their owner."""
    if not actor_id or row_user_id != actor_id:
        raise PolicyViolationError(f"Cannot {action} on behalf of another user")


def ensure_profile_owner(profile: ProfileModel, actor_id: Optional[str]) -> None:
    if not actor_id or profile.user_id != actor_id:
        raise PolicyViolationError("Only the owner can update this profile")


def ensure_course_owner(course: CourseModel, actor_id: Optional[str]) -> None:
    if not actor_id or course.uploader_id != actor_id:
        raise PolicyViolationError("Only the uploader can modify this course")


def ensure_enrollment_owner(
    enrollment: EnrollmentModel, actor_id: Optional[str]
) -> None:
    if not actor_id or enrollment.user_id != actor_id:
        raise PolicyViolationError("Only the owner can modify this library entry")
