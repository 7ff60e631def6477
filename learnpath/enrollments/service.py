"""Enrollment lifecycle service layer.

Business logic for:
- Direct enrollment in free courses
- Enrollment created by a completed payment
- Student dashboard and course roster listings
- Administrative enrollment deletion

Enrollment is idempotent: a duplicate insert (double click, retried
webhook) returns the existing enrollment instead of failing.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from learnpath.auth.schemas import AuthenticatedUser
from learnpath.core.exceptions import (
    AlreadyEnrolledError,
    CourseNotFoundError,
    EnrollmentNotFoundError,
    ForbiddenError,
    NotAvailableError,
    PaymentNotCompletedError,
    PaymentRequiredError,
    ValidationError,
)
from learnpath.core.logging import get_logger
from learnpath.courses.models import Course
from learnpath.courses.visibility import can_edit_course, ensure_course_visible
from learnpath.payments.schemas import PaymentStatus

from .models import Enrollment, EnrollmentSource
from .schemas import EnrollmentListResponse, StudentEnrollmentResponse


if TYPE_CHECKING:
    from learnpath.courses.repository import CourseRepository
    from learnpath.progress.repository import ConsumptionRepository

    from .repository import EnrollmentRepository


logger = get_logger(__name__)


class EnrollmentService:
    """Service for the NONE -> ENROLLED transition and enrollment reads."""

    def __init__(
        self,
        courses: "CourseRepository",
        enrollments: "EnrollmentRepository",
        consumption: "ConsumptionRepository",
    ):
        self.courses = courses
        self.enrollments = enrollments
        self.consumption = consumption

    def _get_course(self, course_id: UUID) -> Course:
        course = self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError()
        return course

    def _create(
        self,
        student_id: UUID,
        course: Course,
        source: EnrollmentSource,
        payment_id: str | None = None,
    ) -> Enrollment:
        enrollment = Enrollment(
            student_id=student_id,
            course_id=course.id,
            source=source,
            payment_id=payment_id,
        )
        try:
            self.enrollments.insert(enrollment)
        except AlreadyEnrolledError:
            existing = self.enrollments.get(student_id, course.id)
            if existing is None:
                # Deleted between the insert and the read
                raise
            # The winning request may have failed before writing the index
            self.enrollments.index_for_student(existing)
            logger.info(
                "enrollment_already_exists",
                student_id=str(student_id),
                course_id=str(course.id),
                source=source.value,
            )
            return existing

        logger.info(
            "enrollment_created",
            enrollment_id=str(enrollment.id),
            student_id=str(student_id),
            course_id=str(course.id),
            source=source.value,
            payment_id=payment_id,
        )
        return enrollment

    # ==========================================================================
    # NONE -> ENROLLED
    # ==========================================================================

    async def enroll_free(self, viewer: AuthenticatedUser, course_id: UUID) -> Enrollment:
        """Enroll ``viewer`` in a free course.

        Raises:
            CourseNotFoundError: If the course does not exist
            NotAvailableError: If the course is hidden from the viewer
            PaymentRequiredError: If the course has a price
        """
        course = self._get_course(course_id)
        ensure_course_visible(viewer, course)

        if not course.is_free:
            raise PaymentRequiredError(details={"price": str(course.price)})

        return self._create(viewer.id, course, EnrollmentSource.FREE)

    async def on_payment_completed(
        self,
        student_id: UUID,
        course_id: UUID,
        payment_id: str,
        status: PaymentStatus | str = PaymentStatus.COMPLETED,
    ) -> Enrollment:
        """Create the enrollment paid for by ``payment_id``.

        Only completed payments enroll; repeated confirmations return the
        existing enrollment.

        Raises:
            PaymentNotCompletedError: If the payment is pending or failed
            CourseNotFoundError: If the course does not exist
            NotAvailableError: If the course is not published
        """
        try:
            status = PaymentStatus(status)
        except ValueError:
            raise ValidationError(
                f"Unknown payment status '{status}'",
                details={"status": "must be pending, completed or failed"},
            ) from None

        if status != PaymentStatus.COMPLETED:
            logger.info(
                "payment_not_completed",
                payment_id=payment_id,
                student_id=str(student_id),
                course_id=str(course_id),
                status=status.value,
            )
            raise PaymentNotCompletedError(details={"status": status.value})

        course = self._get_course(course_id)
        if not course.is_published:
            logger.warning(
                "course_not_available",
                course_id=str(course.id),
                payment_id=payment_id,
            )
            raise NotAvailableError()

        return self._create(student_id, course, EnrollmentSource.PAYMENT, payment_id)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_enrollment(self, student_id: UUID, course_id: UUID) -> Enrollment:
        enrollment = self.enrollments.get(student_id, course_id)
        if enrollment is None:
            raise EnrollmentNotFoundError()
        return enrollment

    async def list_student_enrollments(self, student_id: UUID) -> list[Enrollment]:
        enrollments = self.enrollments.list_by_student(student_id)
        return sorted(enrollments, key=lambda e: e.enrolled_at, reverse=True)

    async def get_dashboard(self, student_id: UUID) -> EnrollmentListResponse:
        """Student's enrollments with course summaries, newest first."""
        items = []
        for enrollment in await self.list_student_enrollments(student_id):
            course = self.courses.get(enrollment.course_id)
            entry = StudentEnrollmentResponse.model_validate(enrollment)
            if course is not None:
                entry.course_title = course.title
                entry.course_thumbnail_url = course.thumbnail_url
            items.append(entry)

        return EnrollmentListResponse(
            items=items,
            total=len(items),
            completed=sum(1 for e in items if e.progress >= 100),
        )

    async def list_course_enrollments(
        self, viewer: AuthenticatedUser, course_id: UUID
    ) -> list[Enrollment]:
        """Roster of a course, for its author or an admin.

        Raises:
            ForbiddenError: If the viewer can not manage the course
        """
        course = self._get_course(course_id)
        ensure_course_visible(viewer, course)
        if not can_edit_course(viewer, course):
            raise ForbiddenError("Only the course author or an admin can view the roster")

        enrollments = self.enrollments.list_by_course(course.id)
        return sorted(enrollments, key=lambda e: e.enrolled_at)

    # ==========================================================================
    # Administration
    # ==========================================================================

    async def delete_enrollment(
        self,
        actor: AuthenticatedUser,
        student_id: UUID,
        course_id: UUID,
    ) -> None:
        """Delete an enrollment and the student's consumption records.

        Raises:
            ForbiddenError: If the actor is not an admin
            EnrollmentNotFoundError: If there is no such enrollment
        """
        if not actor.is_admin:
            raise ForbiddenError("Only admins can delete enrollments")

        enrollment = await self.get_enrollment(student_id, course_id)
        self.consumption.delete_for_enrollment(student_id, course_id)
        self.enrollments.delete(enrollment)

        logger.info(
            "enrollment_deleted",
            enrollment_id=str(enrollment.id),
            student_id=str(student_id),
            course_id=str(course_id),
            deleted_by=str(actor.id),
        )
