"""Course management utilities.

Uploading, editing, browsing and deleting courses. Every read is filtered by
:func:`core.policies.course_visibility_clause`; every write is checked
against the uploader before it is added to the session.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from core import policies
from core.exceptions import CourseNotFoundError, ValidationError
from models.course import ACCESS_TYPES, CONTENT_TYPES, DIFFICULTIES, CourseModel
from models.enrollment import EnrollmentModel
from models.profile import ProfileModel
from schemas.course import parse_tags

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "description",
    "content_type",
    "content_url",
    "content_text",
    "access_type",
    "difficulty",
    "tags",
    "image_url",
)

# content types served from a URL rather than an inline body
URL_CONTENT_TYPES = ("video", "pdf")


def _normalize_tags(tags: Any) -> Optional[List[str]]:
    parsed = parse_tags(tags)
    return parsed or None


def _contains_pattern(text: str) -> str:
    """LIKE pattern matching ``text`` literally anywhere; escape char is ``\\``."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_course(course: CourseModel) -> None:
    """Check a course row before it is written.

    Raises:
        ValidationError: On a missing title, an unknown enum value, or a
            content body that does not match the content type.
    """
    if not course.title or not course.title.strip():
        raise ValidationError("Course title cannot be empty")
    if course.content_type not in CONTENT_TYPES:
        raise ValidationError(f"Invalid content type: {course.content_type}")
    if course.access_type not in ACCESS_TYPES:
        raise ValidationError(f"Invalid access type: {course.access_type}")
    if course.difficulty is not None and course.difficulty not in DIFFICULTIES:
        raise ValidationError(f"Invalid difficulty: {course.difficulty}")
    if course.content_type in URL_CONTENT_TYPES and not course.content_url:
        raise ValidationError(
            f"A content URL is required for {course.content_type} courses"
        )
    if course.content_type == "text" and not course.content_text:
        raise ValidationError("Content text is required for text courses")


class CourseManager:
    """Manages course operations using SQLAlchemy."""

    def __init__(self, db: Session):
        self.db = db

    def _viewer_role(self, viewer_id: Optional[str]) -> Optional[str]:
        if not viewer_id:
            return None
        return (
            self.db.query(ProfileModel.role)
            .filter(ProfileModel.user_id == viewer_id)
            .scalar()
        )

    def _get_model(self, course_id: str) -> CourseModel:
        model = self.db.query(CourseModel).filter(CourseModel.id == course_id).first()
        if not model:
            raise CourseNotFoundError(course_id)
        return model

    def list_visible_courses(
        self,
        viewer_id: Optional[str] = None,
        search: Optional[str] = None,
        difficulty: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> List[CourseModel]:
        """Approved courses the viewer may read, newest first.

        Args:
            viewer_id: Authenticated user ID, or None for anonymous browsing.
            search: Case-insensitive substring of title or description.
            difficulty: Only courses of this difficulty.
            content_type: Only courses of this content type.
        """
        viewer_role = self._viewer_role(viewer_id)
        query = (
            self.db.query(CourseModel)
            .options(joinedload(CourseModel.uploader))
            .filter(policies.course_visibility_clause(viewer_id, viewer_role))
            .filter(CourseModel.is_approved.is_(True))
        )
        if search:
            pattern = _contains_pattern(search.strip())
            query = query.filter(
                or_(
                    CourseModel.title.ilike(pattern, escape="\\"),
                    CourseModel.description.ilike(pattern, escape="\\"),
                )
            )
        if difficulty and difficulty != "all":
            query = query.filter(CourseModel.difficulty == difficulty)
        if content_type and content_type != "all":
            query = query.filter(CourseModel.content_type == content_type)
        return query.order_by(CourseModel.created_at.desc()).all()

    def get_course(self, course_id: str, viewer_id: Optional[str] = None) -> CourseModel:
        """Get a course the viewer may read.

        Raises:
            CourseNotFoundError: If the course does not exist or is hidden
                from the viewer.
        """
        model = self._get_model(course_id)
        if not policies.can_view_course(model, viewer_id, self._viewer_role(viewer_id)):
            raise CourseNotFoundError(course_id)
        return model

    def list_uploaded(self, uploader_id: str) -> List[CourseModel]:
        """Courses uploaded by a user, newest first, whatever their state."""
        return (
            self.db.query(CourseModel)
            .options(joinedload(CourseModel.uploader))
            .filter(CourseModel.uploader_id == uploader_id)
            .order_by(CourseModel.created_at.desc())
            .all()
        )

    def create_course(
        self,
        uploader_id: str,
        actor_id: Optional[str],
        title: str,
        content_type: str,
        description: Optional[str] = None,
        content_url: Optional[str] = None,
        content_text: Optional[str] = None,
        access_type: str = "public",
        difficulty: Optional[str] = None,
        tags: Any = None,
        image_url: Optional[str] = None,
    ) -> CourseModel:
        """Upload a new course.

        Args:
            uploader_id: Owner of the new course.
            actor_id: User performing the upload; must equal uploader_id.

        Returns:
            The created CourseModel.

        Raises:
            PolicyViolationError: If uploading on behalf of someone else.
            ValidationError: If the course data is invalid.
        """
        policies.ensure_self(uploader_id, actor_id, "upload a course")
        model = CourseModel(
            title=(title or "").strip(),
            description=_blank_to_none(description),
            content_type=content_type,
            content_url=_blank_to_none(content_url),
            content_text=_blank_to_none(content_text),
            uploader_id=uploader_id,
            access_type=access_type,
            difficulty=difficulty,
            tags=_normalize_tags(tags),
            image_url=_blank_to_none(image_url),
            is_approved=True,
        )
        _validate_course(model)

        self.db.add(model)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Failed to upload course for user %s", uploader_id)
            raise
        self.db.refresh(model)
        logger.info("User %s uploaded course %s", uploader_id, model.id)
        return model

    def update_course(
        self, course_id: str, actor_id: Optional[str], updates: Dict[str, Any]
    ) -> CourseModel:
        """Apply a partial update to a course.

        Args:
            course_id: Course to update.
            actor_id: User performing the update; must be the uploader.
            updates: Field name to new value; keys outside EDITABLE_FIELDS
                are rejected.

        Raises:
            CourseNotFoundError: If the course does not exist or is hidden.
            PolicyViolationError: If actor is not the uploader.
            ValidationError: If the resulting course is invalid.
        """
        unknown = set(updates) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        model = self.get_course(course_id, actor_id)
        policies.ensure_course_owner(model, actor_id)

        for field, value in updates.items():
            if field == "tags":
                value = _normalize_tags(value)
            elif field == "title":
                value = (value or "").strip()
            elif field not in ("content_type", "access_type", "difficulty"):
                value = _blank_to_none(value)
            setattr(model, field, value)

        try:
            _validate_course(model)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(model)
        logger.info("User %s updated course %s", actor_id, course_id)
        return model

    def delete_course(self, course_id: str, actor_id: Optional[str]) -> None:
        """Delete a course and every library entry pointing at it.

        Library entries go first (there is no database cascade), all in one
        transaction: the counters of every affected user and of the uploader
        are recomputed before the commit, or nothing changes at all.

        Raises:
            CourseNotFoundError: If the course does not exist or is hidden.
            PolicyViolationError: If actor is not the uploader.
        """
        model = self.get_course(course_id, actor_id)
        policies.ensure_course_owner(model, actor_id)

        enrollments = (
            self.db.query(EnrollmentModel)
            .filter(EnrollmentModel.course_id == course_id)
            .all()
        )
        try:
            for enrollment in enrollments:
                self.db.delete(enrollment)
            # enrollments must be gone before the course row
            self.db.flush()
            self.db.delete(model)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Failed to delete course %s", course_id)
            raise
        logger.info(
            "User %s deleted course %s (%d library entries removed)",
            actor_id,
            course_id,
            len(enrollments),
        )
