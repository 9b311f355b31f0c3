"""Conversions between database models and API schemas."""

from typing import Optional

from config import DEFAULT_COURSE_IMAGE_URL
from models.course import CourseModel
from models.enrollment import EnrollmentModel
from models.profile import ProfileModel
from models.user import UserModel
from schemas.course import Course
from schemas.library import Enrollment, LibraryEntry
from schemas.profile import Profile
from schemas.user import User


def user_to_model(user: User) -> UserModel:
    return UserModel(
        user_id=user.user_id,
        username=user.username,
        password_hash=user.password_hash,
        email=user.email,
        create_at=user.create_at,
    )


def model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        username=model.username,
        password_hash=model.password_hash,
        email=model.email,
        create_at=model.create_at,
    )


def model_to_profile(model: ProfileModel) -> Profile:
    return Profile(
        id=model.id,
        user_id=model.user_id,
        full_name=model.full_name,
        avatar_url=model.avatar_url,
        role=model.role,
        completed=model.completed or 0,
        enrolled=model.enrolled or 0,
        uploads=model.uploads or 0,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_course(model: CourseModel, in_library: Optional[bool] = None) -> Course:
    uploader_name: Optional[str] = None
    if model.uploader is not None:
        uploader_name = model.uploader.full_name
    return Course(
        id=model.id,
        title=model.title,
        description=model.description,
        content_type=model.content_type,
        content_url=model.content_url,
        content_text=model.content_text,
        uploader_id=model.uploader_id,
        uploader_name=uploader_name,
        access_type=model.access_type,
        difficulty=model.difficulty,
        tags=list(model.tags or []),
        image_url=model.image_url or DEFAULT_COURSE_IMAGE_URL,
        is_approved=bool(model.is_approved),
        created_at=model.created_at,
        updated_at=model.updated_at,
        in_library=in_library,
    )


def model_to_enrollment(model: EnrollmentModel) -> Enrollment:
    return Enrollment(
        id=model.id,
        user_id=model.user_id,
        course_id=model.course_id,
        completed=bool(model.completed),
        completed_at=model.completed_at,
        added_at=model.added_at,
    )


def model_to_library_entry(
    model: EnrollmentModel, course: Optional[CourseModel]
) -> LibraryEntry:
    return LibraryEntry(
        **model_to_enrollment(model).model_dump(),
        course=model_to_course(course) if course is not None else None,
    )
