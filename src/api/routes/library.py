"""Library routes: add, complete and remove courses."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.routes.auth import get_current_user
from core.dependencies import LibraryManagerDep
from core.exceptions import (
    CourseNotFoundError,
    DuplicateEnrollmentError,
    EnrollmentNotFoundError,
)
from schemas.library import (
    Enrollment,
    EnrollRequest,
    LibraryEntry,
    UpdateEnrollmentRequest,
)
from schemas.user import User
from utils.converters import model_to_enrollment, model_to_library_entry

router = APIRouter(prefix="/api/library", tags=["Library"])


def _entry_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Library entry not found",
    )


@router.get("", response_model=List[LibraryEntry], summary="My library")
def list_library(
    library_manager: LibraryManagerDep,
    current_user: User = Depends(get_current_user),
) -> List[LibraryEntry]:
    entries = library_manager.list_library(current_user.user_id)
    return [model_to_library_entry(model, course) for model, course in entries]


@router.post(
    "",
    response_model=Enrollment,
    status_code=status.HTTP_201_CREATED,
    summary="Add a course to my library",
)
def add_to_library(
    req: EnrollRequest,
    library_manager: LibraryManagerDep,
    current_user: User = Depends(get_current_user),
) -> Enrollment:
    try:
        model = library_manager.enroll(
            current_user.user_id, current_user.user_id, req.course_id
        )
    except CourseNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )
    except DuplicateEnrollmentError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    return model_to_enrollment(model)


@router.patch(
    "/{enrollment_id}",
    response_model=Enrollment,
    summary="Mark a library course completed or incomplete",
)
def update_library_entry(
    enrollment_id: str,
    req: UpdateEnrollmentRequest,
    library_manager: LibraryManagerDep,
    current_user: User = Depends(get_current_user),
) -> Enrollment:
    """Set the completion state, or toggle it when ``completed`` is omitted."""
    try:
        if req.completed is None:
            model = library_manager.toggle_completed(enrollment_id, current_user.user_id)
        else:
            model = library_manager.set_completed(
                enrollment_id, current_user.user_id, req.completed
            )
    except EnrollmentNotFoundError:
        raise _entry_not_found()
    return model_to_enrollment(model)


@router.delete("/{enrollment_id}", summary="Remove a course from my library")
def remove_from_library(
    enrollment_id: str,
    library_manager: LibraryManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    try:
        library_manager.remove(enrollment_id, current_user.user_id)
    except EnrollmentNotFoundError:
        raise _entry_not_found()
    return {"success": True, "message": "Course removed from library"}
