"""Domain error taxonomy shared by every module.

Each error carries a machine readable ``code`` and a ``status_code``
used by the application exception handler. Services raise these; routers
never catch them individually.
"""

from typing import Any


class LearnPathError(Exception):
    """Base exception for domain errors."""

    status_code: int = 400
    default_message: str = "Request could not be processed"
    default_code: str = "error"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


# ==============================================================================
# Not found
# ==============================================================================


class NotFoundError(LearnPathError):
    status_code = 404
    default_message = "Resource not found"
    default_code = "not_found"


class CourseNotFoundError(NotFoundError):
    default_message = "Course not found"
    default_code = "course_not_found"


class SectionNotFoundError(NotFoundError):
    default_message = "Section not found"
    default_code = "section_not_found"


class ContentItemNotFoundError(NotFoundError):
    default_message = "Content item not found"
    default_code = "content_item_not_found"


class EnrollmentNotFoundError(NotFoundError):
    default_message = "Enrollment not found"
    default_code = "enrollment_not_found"


class NotAvailableError(LearnPathError):
    """Raised when a viewer may not see an unpublished course.

    Externally this is indistinguishable from a missing course.
    """

    status_code = 404
    default_message = "Course not found"
    default_code = "course_not_available"


# ==============================================================================
# Validation
# ==============================================================================


class ValidationError(LearnPathError):
    status_code = 422
    default_message = "Invalid input"
    default_code = "validation_error"


class PaymentRequiredError(ValidationError):
    status_code = 402
    default_message = "Course requires payment before enrollment"
    default_code = "payment_required"


class PaymentNotCompletedError(ValidationError):
    status_code = 409
    default_message = "Payment has not completed"
    default_code = "payment_not_completed"


# ==============================================================================
# Authorization and state
# ==============================================================================


class ForbiddenError(LearnPathError):
    status_code = 403
    default_message = "Permission denied"
    default_code = "forbidden"


class AlreadyEnrolledError(LearnPathError):
    """Raised by the enrollment store when the (student, course) pair exists."""

    status_code = 409
    default_message = "Student is already enrolled in this course"
    default_code = "already_enrolled"


class NotEnrolledError(LearnPathError):
    status_code = 409
    default_message = "Student is not enrolled in this course"
    default_code = "not_enrolled"


class StructureLockTimeoutError(LearnPathError):
    status_code = 503
    default_message = "Course structure is busy, try again"
    default_code = "structure_busy"
