"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes,
following Google Python Style Guide and FastAPI best practices.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import course_manager
from utils import library_manager
from utils import profile_manager
from utils import user_manager


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_profile_manager(db: Session = Depends(get_db)) -> profile_manager.ProfileManager:
    """Get ProfileManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        ProfileManager instance.
    """
    return profile_manager.ProfileManager(db)


def get_course_manager(db: Session = Depends(get_db)) -> course_manager.CourseManager:
    """Get CourseManager instance with request-scoped DB session."""
    return course_manager.CourseManager(db)


def get_library_manager(
    db: Session = Depends(get_db),
) -> library_manager.LibraryManager:
    """Get LibraryManager instance with request-scoped DB session."""
    return library_manager.LibraryManager(db)


# Type aliases for dependency injection
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
ProfileManagerDep = Annotated[
    profile_manager.ProfileManager, Depends(get_profile_manager)
]
CourseManagerDep = Annotated[
    course_manager.CourseManager, Depends(get_course_manager)
]
LibraryManagerDep = Annotated[
    library_manager.LibraryManager, Depends(get_library_manager)
]
