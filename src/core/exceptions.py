"""Custom exception classes for the Course Share API.

This module defines application-specific exceptions following Google Python
Style Guide.
"""


class CourseShareError(Exception):
    """Base exception for all Course Share errors."""

    pass


class ProfileNotFoundError(CourseShareError):
    """Raised when a requested profile cannot be found."""

    def __init__(self, user_id: str):
        """Initialize the exception.

        Args:
            user_id: The user ID whose profile was not found.
        """
        self.user_id = user_id
        super().__init__(f"Profile for user '{user_id}' not found")


class CourseNotFoundError(CourseShareError):
    """Raised when a course does not exist or is not visible to the caller."""

    def __init__(self, course_id: str):
        """Initialize the exception.

        Args:
            course_id: The ID of the course that was not found.
        """
        self.course_id = course_id
        super().__init__(f"Course '{course_id}' not found")


class EnrollmentNotFoundError(CourseShareError):
    """Raised when a library entry cannot be found for the caller."""

    def __init__(self, enrollment_id: str):
        self.enrollment_id = enrollment_id
        super().__init__(f"Library entry '{enrollment_id}' not found")


class PolicyViolationError(CourseShareError):
    """Raised when an actor lacks the required relationship to a row."""

    pass


class DuplicateEnrollmentError(CourseShareError):
    """Raised when a user adds the same course to their library twice."""

    def __init__(self, user_id: str, course_id: str):
        self.user_id = user_id
        self.course_id = course_id
        super().__init__(f"Course '{course_id}' is already in the library")


class ValidationError(CourseShareError):
    """Raised when data validation fails."""

    pass
