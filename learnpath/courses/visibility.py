"""Publication gate.

Decides whether a course, and everything inside it, is visible to a
viewer. The rule depends only on the viewer's role and id, the course
author and the published flag:

- admin sees every course
- staff sees their own courses in any state, others' only once published
- students and anonymous visitors see published courses only
"""

from learnpath.auth.permissions import UserRole, is_admin
from learnpath.auth.schemas import AuthenticatedUser
from learnpath.core.exceptions import ForbiddenError, NotAvailableError
from learnpath.core.logging import get_logger

from .models import Course


logger = get_logger(__name__)


def is_author(viewer: AuthenticatedUser | None, course: Course) -> bool:
    return viewer is not None and viewer.id == course.created_by


def can_view_course(viewer: AuthenticatedUser | None, course: Course) -> bool:
    """Apply the publication gate for ``viewer`` (None for anonymous)."""
    if course.is_published:
        return True
    if viewer is None:
        return False
    if is_admin(viewer.role):
        return True
    return viewer.role == UserRole.STAFF and is_author(viewer, course)


def can_edit_course(viewer: AuthenticatedUser | None, course: Course) -> bool:
    """Only the author (staff) or an admin may change a course."""
    if viewer is None:
        return False
    if is_admin(viewer.role):
        return True
    return viewer.role == UserRole.STAFF and is_author(viewer, course)


def ensure_course_visible(viewer: AuthenticatedUser | None, course: Course) -> None:
    """Raise NotAvailableError when the gate hides ``course`` from ``viewer``."""
    if can_view_course(viewer, course):
        return

    logger.warning(
        "course_not_available",
        course_id=str(course.id),
        viewer_id=str(viewer.id) if viewer else None,
        viewer_role=viewer.role.value if viewer else None,
    )
    raise NotAvailableError()


def ensure_course_editable(viewer: AuthenticatedUser | None, course: Course) -> None:
    """Raise ForbiddenError unless ``viewer`` may author ``course``.

    Viewers that can not even see the course get NotAvailableError instead,
    so unpublished courses stay hidden.
    """
    ensure_course_visible(viewer, course)
    if not can_edit_course(viewer, course):
        raise ForbiddenError("Only the course author or an admin can change this course")
