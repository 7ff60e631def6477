"""Course catalog service layer.

Business logic for:
- Course CRUD (courses start unpublished)
- Publishing and unpublishing
- Catalog listings filtered through the publication gate
- Administrative deletion with full cascade
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from learnpath.auth.permissions import UserRole
from learnpath.auth.schemas import AuthenticatedUser
from learnpath.core.exceptions import CourseNotFoundError, ForbiddenError
from learnpath.core.logging import get_logger
from learnpath.core.validation import require_price, require_text

from .models import Course
from .schemas import CreateCourseRequest, UpdateCourseRequest
from .visibility import can_view_course, ensure_course_editable, ensure_course_visible


if TYPE_CHECKING:
    from learnpath.core.locks import CourseLockManager
    from learnpath.enrollments.repository import EnrollmentRepository
    from learnpath.progress.repository import ConsumptionRepository
    from learnpath.structure.repository import StructureRepository

    from .repository import CourseRepository


logger = get_logger(__name__)


class CourseService:
    """Service for course catalog management."""

    def __init__(
        self,
        courses: "CourseRepository",
        structure: "StructureRepository",
        enrollments: "EnrollmentRepository",
        consumption: "ConsumptionRepository",
        locks: "CourseLockManager",
    ):
        self.courses = courses
        self.structure = structure
        self.enrollments = enrollments
        self.consumption = consumption
        self.locks = locks

    # ==========================================================================
    # Lookups
    # ==========================================================================

    def get_course(self, course_id: UUID) -> Course:
        """Get a course regardless of visibility.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError()
        return course

    def get_visible_course(
        self, viewer: AuthenticatedUser | None, course_id: UUID
    ) -> Course:
        """Get a course through the publication gate."""
        course = self.get_course(course_id)
        ensure_course_visible(viewer, course)
        return course

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create_course(
        self, data: CreateCourseRequest, author: AuthenticatedUser
    ) -> Course:
        """Create an unpublished course owned by ``author``."""
        if author.role == UserRole.STUDENT:
            raise ForbiddenError("Only staff can create courses")

        course = Course(
            title=require_text(data.title, "title"),
            description=data.description,
            thumbnail_url=data.thumbnail_url,
            price=require_price(data.price),
            is_published=False,
            created_by=author.id,
        )
        self.courses.insert(course)

        logger.info(
            "course_created",
            course_id=str(course.id),
            created_by=str(author.id),
            price=str(course.price),
        )
        return course

    async def update_course(
        self,
        course_id: UUID,
        data: UpdateCourseRequest,
        actor: AuthenticatedUser,
    ) -> Course:
        """Apply a partial update. Existing enrollments ignore price changes."""
        course = self.get_course(course_id)
        ensure_course_editable(actor, course)

        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        if "title" in changes:
            course.title = require_text(changes["title"], "title")
        if "description" in changes:
            course.description = changes["description"] or ""
        if "thumbnail_url" in changes:
            course.thumbnail_url = changes["thumbnail_url"]
        if "price" in changes:
            course.price = require_price(changes["price"])

        course.updated_at = datetime.now(UTC)
        self.courses.update(course, was_published=course.is_published)

        logger.info(
            "course_updated",
            course_id=str(course.id),
            fields=sorted(changes),
        )
        return course

    async def set_published(
        self,
        course_id: UUID,
        is_published: bool,
        actor: AuthenticatedUser,
    ) -> Course:
        """Publish or unpublish a course."""
        course = self.get_course(course_id)
        ensure_course_editable(actor, course)

        was_published = course.is_published
        if was_published == is_published:
            return course

        course.is_published = is_published
        course.updated_at = datetime.now(UTC)
        self.courses.update(course, was_published=was_published)

        logger.info(
            "course_published" if is_published else "course_unpublished",
            course_id=str(course.id),
        )
        return course

    async def delete_course(self, course_id: UUID, actor: AuthenticatedUser) -> None:
        """Delete a course with its structure, enrollments and consumption.

        Children are removed before the course row, so a failed cascade can
        be retried.

        Raises:
            ForbiddenError: If the actor is not an admin
        """
        if not actor.is_admin:
            raise ForbiddenError("Only admins can delete courses")

        course = self.get_course(course_id)

        async with self.locks.course_lock(course.id):
            enrollments = self.enrollments.list_by_course(course.id)
            for enrollment in enrollments:
                self.consumption.delete_for_enrollment(enrollment.student_id, course.id)
                self.enrollments.delete(enrollment)

            self.structure.delete_course_structure(course.id)
            self.courses.delete(course)

        logger.info(
            "course_deleted",
            course_id=str(course.id),
            enrollments_removed=len(enrollments),
        )

    # ==========================================================================
    # Listings
    # ==========================================================================

    async def list_courses(
        self, viewer: AuthenticatedUser | None, limit: int = 50
    ) -> list[Course]:
        """List every course ``viewer`` may see.

        Admins see the whole catalog, staff see published courses plus their
        own drafts, everyone else sees published courses only.
        """
        if viewer is not None and viewer.is_admin:
            courses = self.courses.list_all(limit)
        else:
            courses = self.courses.list_by_publication(True, limit)
            if viewer is not None and viewer.role == UserRole.STAFF:
                seen = {course.id for course in courses}
                own = [
                    c for c in self.courses.list_by_author(viewer.id, limit)
                    if c.id not in seen
                ]
                courses = own + courses

        visible = [c for c in courses if can_view_course(viewer, c)]
        visible.sort(key=lambda c: c.created_at, reverse=True)
        return visible[:limit]

    async def list_authored_courses(
        self, author: AuthenticatedUser, limit: int = 50
    ) -> list[Course]:
        """Courses created by ``author`` in any publication state."""
        return self.courses.list_by_author(author.id, limit)
