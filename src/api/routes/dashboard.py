"""Dashboard route: a user's library, uploads and usage counters in one call."""

import logging

from fastapi import APIRouter, Depends

from api.routes.auth import get_current_user
from core.dependencies import CourseManagerDep, LibraryManagerDep, ProfileManagerDep
from core.exceptions import ProfileNotFoundError
from schemas.library import DashboardResponse
from schemas.profile import ProfileStats
from schemas.user import User
from utils.converters import model_to_course, model_to_library_entry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponse, summary="Dashboard data")
def get_dashboard(
    profile_manager: ProfileManagerDep,
    course_manager: CourseManagerDep,
    library_manager: LibraryManagerDep,
    current_user: User = Depends(get_current_user),
) -> DashboardResponse:
    """Library entries, uploaded courses and profile counters.

    Counters come from the profile. Without a profile they are counted from
    the returned lists instead.
    """
    enrolled = [
        model_to_library_entry(model, course)
        for model, course in library_manager.list_library(current_user.user_id)
    ]
    uploaded = [
        model_to_course(m) for m in course_manager.list_uploaded(current_user.user_id)
    ]
    try:
        stats = profile_manager.get_stats(current_user.user_id)
    except ProfileNotFoundError:
        logger.warning(
            "No profile for user %s, counting dashboard stats", current_user.user_id
        )
        stats = ProfileStats(
            completed=sum(1 for entry in enrolled if entry.completed),
            enrolled=len(enrolled),
            uploads=len(uploaded),
        )
    return DashboardResponse(stats=stats, enrolled=enrolled, uploaded=uploaded)
