"""Progress engine.

Progress is always re-derived from ground truth: the consumption records
of a student crossed with the course's current items. Nothing is
incremented, so recomputing is idempotent and races between a deletion
and a consumption converge on the same value.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from learnpath.auth.schemas import AuthenticatedUser
from learnpath.core.exceptions import (
    ContentItemNotFoundError,
    CourseNotFoundError,
    NotEnrolledError,
)
from learnpath.core.logging import get_logger
from learnpath.courses.visibility import ensure_course_visible
from learnpath.enrollments.models import Enrollment
from learnpath.structure.models import CourseStructure

from .calculator import calculate_progress, completed_item_ids
from .models import ConsumptionRecord
from .schemas import (
    ConsumeItemResponse,
    CourseProgressResponse,
    SectionProgressResponse,
)


if TYPE_CHECKING:
    from learnpath.courses.repository import CourseRepository
    from learnpath.enrollments.repository import EnrollmentRepository
    from learnpath.structure.repository import StructureRepository

    from .repository import ConsumptionRepository


logger = get_logger(__name__)


class ProgressService:
    """Service deriving and persisting enrollment progress."""

    def __init__(
        self,
        courses: "CourseRepository",
        structure: "StructureRepository",
        enrollments: "EnrollmentRepository",
        consumption: "ConsumptionRepository",
    ):
        self.courses = courses
        self.structure = structure
        self.enrollments = enrollments
        self.consumption = consumption

    def _snapshot(self, course_id: UUID) -> CourseStructure:
        return CourseStructure.build(
            course_id,
            self.structure.list_sections(course_id),
            self.structure.list_course_items(course_id),
        )

    def _get_enrollment(self, student_id: UUID, course_id: UUID) -> Enrollment:
        enrollment = self.enrollments.get(student_id, course_id)
        if enrollment is None:
            raise NotEnrolledError()
        return enrollment

    def _apply(self, enrollment: Enrollment, snapshot: CourseStructure) -> int:
        """Recompute one enrollment against ``snapshot`` and persist changes."""
        records = self.consumption.list_for_enrollment(
            enrollment.student_id, enrollment.course_id
        )
        completed = completed_item_ids(snapshot.item_ids, records)
        progress = calculate_progress(snapshot.total_items, len(completed))

        if progress != enrollment.progress:
            previous = enrollment.progress
            enrollment.progress = progress
            enrollment.updated_at = datetime.now(UTC)
            if not self.enrollments.update_progress(enrollment):
                logger.info(
                    "progress_write_skipped",
                    student_id=str(enrollment.student_id),
                    course_id=str(enrollment.course_id),
                    reason="enrollment_deleted",
                )
                return progress
            logger.info(
                "progress_recomputed",
                student_id=str(enrollment.student_id),
                course_id=str(enrollment.course_id),
                previous=previous,
                progress=progress,
                total_items=snapshot.total_items,
                completed_items=len(completed),
            )
        return progress

    # ==========================================================================
    # Recomputation
    # ==========================================================================

    async def recompute_progress(self, student_id: UUID, course_id: UUID) -> int:
        """Derive and store the student's progress in the course.

        Returns:
            Progress percentage in [0, 100]

        Raises:
            NotEnrolledError: If the student is not enrolled (nothing is written)
        """
        enrollment = self._get_enrollment(student_id, course_id)
        return self._apply(enrollment, self._snapshot(course_id))

    async def recompute_course(self, course_id: UUID) -> dict[UUID, int]:
        """Recompute every enrollment of a course after a structural change.

        Returns:
            Mapping of student id to new progress
        """
        enrollments = self.enrollments.list_by_course(course_id)
        if not enrollments:
            return {}

        snapshot = self._snapshot(course_id)
        results = {
            enrollment.student_id: self._apply(enrollment, snapshot)
            for enrollment in enrollments
        }

        logger.info(
            "course_progress_recomputed",
            course_id=str(course_id),
            enrollments=len(results),
            total_items=snapshot.total_items,
        )
        return results

    # ==========================================================================
    # Consumption
    # ==========================================================================

    async def mark_item_consumed(
        self, student: AuthenticatedUser, item_id: UUID
    ) -> ConsumeItemResponse:
        """Record that ``student`` completed an item and recompute progress.

        Raises:
            ContentItemNotFoundError: If the item does not exist
            NotAvailableError: If the course is hidden from the student
            NotEnrolledError: If the student is not enrolled in the course
        """
        item = self.structure.get_item(item_id)
        if item is None:
            raise ContentItemNotFoundError()

        course = self.courses.get(item.course_id)
        if course is None:
            raise CourseNotFoundError()
        ensure_course_visible(student, course)

        enrollment = self._get_enrollment(student.id, course.id)

        record = ConsumptionRecord(
            student_id=student.id,
            course_id=course.id,
            item_id=item.id,
        )
        self.consumption.upsert(record)

        logger.info(
            "item_consumed",
            student_id=str(student.id),
            course_id=str(course.id),
            item_id=str(item.id),
        )

        progress = self._apply(enrollment, self._snapshot(course.id))

        return ConsumeItemResponse(
            course_id=course.id,
            item_id=item.id,
            progress=progress,
            status=enrollment.status,
            consumed_at=record.consumed_at,
        )

    # ==========================================================================
    # Read model
    # ==========================================================================

    async def get_course_progress(
        self,
        student_id: UUID,
        course_id: UUID,
        viewer: AuthenticatedUser | None = None,
    ) -> CourseProgressResponse:
        """Progress detail for one enrollment.

        The percentage is the stored one; per-section counts are derived
        from the current structure.
        """
        course = self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError()
        if viewer is not None:
            ensure_course_visible(viewer, course)

        enrollment = self._get_enrollment(student_id, course_id)
        snapshot = self._snapshot(course_id)
        records = self.consumption.list_for_enrollment(student_id, course_id)
        completed = completed_item_ids(snapshot.item_ids, records)

        sections = []
        for outline in snapshot.sections:
            consumed = [item.id for item in outline.items if item.id in completed]
            sections.append(
                SectionProgressResponse(
                    section_id=outline.section.id,
                    title=outline.section.title,
                    order_index=outline.section.order_index,
                    total_items=len(outline.items),
                    completed_items=len(consumed),
                    consumed_item_ids=consumed,
                )
            )

        next_item_id = next(
            (item_id for item_id in snapshot.item_ids if item_id not in completed),
            None,
        )

        return CourseProgressResponse(
            course_id=course_id,
            student_id=student_id,
            progress=enrollment.progress,
            status=enrollment.status,
            total_items=snapshot.total_items,
            completed_items=len(completed),
            sections=sections,
            next_item_id=next_item_id,
            enrolled_at=enrollment.enrolled_at,
        )
