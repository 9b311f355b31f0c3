from .base import Base
from .user import UserModel
from .profile import ProfileModel
from .course import CourseModel
from .enrollment import EnrollmentModel

__all__ = [
    "Base",
    "UserModel",
    "ProfileModel",
    "CourseModel",
    "EnrollmentModel",
]
