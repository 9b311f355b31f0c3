"""Course routes: browse, upload, edit and delete."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.routes.auth import get_current_user, get_optional_user
from core.dependencies import CourseManagerDep, LibraryManagerDep
from core.exceptions import (
    CourseNotFoundError,
    PolicyViolationError,
    ValidationError,
)
from schemas.course import (
    ContentType,
    Course,
    CreateCourseRequest,
    Difficulty,
    UpdateCourseRequest,
)
from schemas.user import User
from utils.converters import model_to_course

router = APIRouter(prefix="/api/courses", tags=["Course"])


def _course_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Course not found",
    )


@router.get("", response_model=List[Course], summary="Browse courses")
def list_courses(
    course_manager: CourseManagerDep,
    library_manager: LibraryManagerDep,
    search: Optional[str] = Query(default=None, description="Match title or description"),
    difficulty: Optional[Difficulty] = None,
    content_type: Optional[ContentType] = None,
    current_user: Optional[User] = Depends(get_optional_user),
) -> List[Course]:
    """List approved courses visible to the caller, newest first.

    Anonymous callers see public courses only; premium and admin users also
    see premium courses. For signed-in callers each course carries
    ``in_library``.
    """
    models = course_manager.list_visible_courses(
        viewer_id=current_user.user_id if current_user else None,
        search=search,
        difficulty=difficulty,
        content_type=content_type,
    )
    if current_user is None:
        return [model_to_course(m) for m in models]
    library_ids = library_manager.library_course_ids(current_user.user_id)
    return [model_to_course(m, in_library=m.id in library_ids) for m in models]


@router.get("/mine", response_model=List[Course], summary="Courses I uploaded")
def list_my_courses(
    course_manager: CourseManagerDep,
    current_user: User = Depends(get_current_user),
) -> List[Course]:
    models = course_manager.list_uploaded(current_user.user_id)
    return [model_to_course(m) for m in models]


@router.get("/{course_id}", response_model=Course, summary="Get a course")
def get_course(
    course_id: str,
    course_manager: CourseManagerDep,
    library_manager: LibraryManagerDep,
    current_user: Optional[User] = Depends(get_optional_user),
) -> Course:
    try:
        model = course_manager.get_course(
            course_id, current_user.user_id if current_user else None
        )
    except CourseNotFoundError:
        raise _course_not_found()
    if current_user is None:
        return model_to_course(model)
    in_library = (
        library_manager.get_enrollment_for_course(current_user.user_id, course_id)
        is not None
    )
    return model_to_course(model, in_library=in_library)


@router.post(
    "",
    response_model=Course,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a course",
)
def create_course(
    req: CreateCourseRequest,
    course_manager: CourseManagerDep,
    current_user: User = Depends(get_current_user),
) -> Course:
    """Upload a course owned by the current user.

    Video and PDF courses need a content URL; text courses need content text.
    """
    try:
        model = course_manager.create_course(
            uploader_id=current_user.user_id,
            actor_id=current_user.user_id,
            **req.model_dump(),
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return model_to_course(model)


@router.patch("/{course_id}", response_model=Course, summary="Edit a course")
def update_course(
    course_id: str,
    req: UpdateCourseRequest,
    course_manager: CourseManagerDep,
    current_user: User = Depends(get_current_user),
) -> Course:
    """Apply the fields present in the body. Uploader only."""
    try:
        model = course_manager.update_course(
            course_id,
            current_user.user_id,
            req.model_dump(exclude_unset=True),
        )
    except CourseNotFoundError:
        raise _course_not_found()
    except PolicyViolationError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return model_to_course(model)


@router.delete("/{course_id}", summary="Delete a course")
def delete_course(
    course_id: str,
    course_manager: CourseManagerDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    """Delete a course and remove it from every library. Uploader only."""
    try:
        course_manager.delete_course(course_id, current_user.user_id)
    except CourseNotFoundError:
        raise _course_not_found()
    except PolicyViolationError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        )
    return {"success": True, "message": "Course deleted successfully"}
