"""Library management utilities.

A user's library is the set of their enrollments (``user_courses`` rows):
adding a course, marking it completed or incomplete, and removing it. Each of
these writes triggers a recompute of the owner's profile counters in the same
transaction (see :mod:`core.stats`).
"""

import logging
from datetime import datetime
from typing import List, Optional, Set, Tuple

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from core import policies
from core.exceptions import (
    CourseNotFoundError,
    DuplicateEnrollmentError,
    EnrollmentNotFoundError,
)
from models.course import CourseModel
from models.enrollment import EnrollmentModel
from models.profile import ProfileModel
from utils.course_manager import CourseManager

logger = logging.getLogger(__name__)


class LibraryManager:
    """Manages library (enrollment) operations using SQLAlchemy."""

    def __init__(self, db: Session):
        self.db = db

    def _get_owned(self, enrollment_id: str, actor_id: Optional[str]) -> EnrollmentModel:
        model = (
            self.db.query(EnrollmentModel)
            .filter(EnrollmentModel.id == enrollment_id)
            .first()
        )
        # Other users' entries are not readable, so they look missing.
        if not model or not actor_id or model.user_id != actor_id:
            raise EnrollmentNotFoundError(enrollment_id)
        return model

    def list_library(
        self, user_id: str
    ) -> List[Tuple[EnrollmentModel, Optional[CourseModel]]]:
        """Library entries of a user, most recently added first.

        Returns:
            (enrollment, course) pairs. The course is None when it is no
            longer visible to the user.
        """
        viewer_role = (
            self.db.query(ProfileModel.role)
            .filter(ProfileModel.user_id == user_id)
            .scalar()
        )
        models = (
            self.db.query(EnrollmentModel)
            .options(joinedload(EnrollmentModel.course).joinedload(CourseModel.uploader))
            .filter(EnrollmentModel.user_id == user_id)
            .order_by(EnrollmentModel.added_at.desc())
            .all()
        )
        results = []
        for model in models:
            course = model.course
            if course is not None and not policies.can_view_course(
                course, user_id, viewer_role
            ):
                course = None
            results.append((model, course))
        return results

    def library_course_ids(self, user_id: str) -> Set[str]:
        rows = (
            self.db.query(EnrollmentModel.course_id)
            .filter(EnrollmentModel.user_id == user_id)
            .all()
        )
        return {row.course_id for row in rows}

    def get_enrollment_for_course(
        self, user_id: str, course_id: str
    ) -> Optional[EnrollmentModel]:
        return (
            self.db.query(EnrollmentModel)
            .filter(
                EnrollmentModel.user_id == user_id,
                EnrollmentModel.course_id == course_id,
            )
            .first()
        )

    def enroll(
        self, user_id: str, actor_id: Optional[str], course_id: str
    ) -> EnrollmentModel:
        """Add a course to a user's library.

        Args:
            user_id: Owner of the new library entry.
            actor_id: User performing the action; must equal user_id.
            course_id: Course to add; must be visible to the user.

        Returns:
            The new EnrollmentModel, not completed.

        Raises:
            PolicyViolationError: If enrolling on behalf of someone else.
            CourseNotFoundError: If the course does not exist or is hidden.
            DuplicateEnrollmentError: If the course is already in the library.
        """
        policies.ensure_self(user_id, actor_id, "add a course to a library")
        CourseManager(self.db).get_course(course_id, user_id)

        model = EnrollmentModel(user_id=user_id, course_id=course_id, completed=False)
        self.db.add(model)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if self.get_enrollment_for_course(user_id, course_id) is not None:
                raise DuplicateEnrollmentError(user_id, course_id) from e
            raise CourseNotFoundError(course_id) from e
        self.db.refresh(model)
        logger.info("User %s added course %s to library", user_id, course_id)
        return model

    def set_completed(
        self, enrollment_id: str, actor_id: Optional[str], completed: bool
    ) -> EnrollmentModel:
        """Mark a library entry completed or incomplete.

        ``completed_at`` is stamped on the incomplete -> completed transition
        and cleared on the way back; setting the current state again keeps
        the existing timestamp.

        Raises:
            EnrollmentNotFoundError: If the entry does not exist or belongs
                to another user.
        """
        model = self._get_owned(enrollment_id, actor_id)
        policies.ensure_enrollment_owner(model, actor_id)

        if completed and not model.completed:
            model.completed_at = datetime.now(pytz.utc)
        elif not completed:
            model.completed_at = None
        model.completed = completed

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(model)
        logger.info(
            "User %s marked library entry %s as %s",
            actor_id,
            enrollment_id,
            "completed" if completed else "incomplete",
        )
        return model

    def toggle_completed(
        self, enrollment_id: str, actor_id: Optional[str]
    ) -> EnrollmentModel:
        model = self._get_owned(enrollment_id, actor_id)
        return self.set_completed(enrollment_id, actor_id, not model.completed)

    def remove(self, enrollment_id: str, actor_id: Optional[str]) -> None:
        """Remove a course from the owner's library.

        Raises:
            EnrollmentNotFoundError: If the entry does not exist or belongs
                to another user.
        """
        model = self._get_owned(enrollment_id, actor_id)
        policies.ensure_enrollment_owner(model, actor_id)
        self.db.delete(model)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("User %s removed library entry %s", actor_id, enrollment_id)
