"""Enrollment API endpoints.

Provides routes for:
- Free-course enrollment
- Student dashboard
- Course roster for authors and admins
- Administrative deletion
"""

from uuid import UUID

from fastapi import APIRouter, status

from learnpath.auth.dependencies import AdminUser, CurrentUser, StaffUser

from .dependencies import EnrollmentServiceDep
from .schemas import CourseRosterResponse, EnrollmentListResponse, EnrollmentResponse


router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


@router.post(
    "/courses/{course_id}",
    response_model=EnrollmentResponse,
    summary="Enroll in a free course",
)
async def enroll_free(
    course_id: UUID,
    enrollment_service: EnrollmentServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Enroll the caller. Repeating the request returns the same enrollment.

    Paid courses answer 402; enrollment happens through the payment webhook.
    """
    enrollment = await enrollment_service.enroll_free(user, course_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.get(
    "/me",
    response_model=EnrollmentListResponse,
    summary="List my enrollments",
)
async def my_enrollments(
    enrollment_service: EnrollmentServiceDep,
    user: CurrentUser,
) -> EnrollmentListResponse:
    return await enrollment_service.get_dashboard(user.id)


@router.get(
    "/courses/{course_id}/me",
    response_model=EnrollmentResponse,
    summary="Get my enrollment in a course",
)
async def my_enrollment(
    course_id: UUID,
    enrollment_service: EnrollmentServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    enrollment = await enrollment_service.get_enrollment(user.id, course_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.get(
    "/courses/{course_id}",
    response_model=CourseRosterResponse,
    summary="Course roster",
)
async def course_roster(
    course_id: UUID,
    enrollment_service: EnrollmentServiceDep,
    user: StaffUser,
) -> CourseRosterResponse:
    enrollments = await enrollment_service.list_course_enrollments(user, course_id)
    return CourseRosterResponse(
        course_id=course_id,
        items=[EnrollmentResponse.model_validate(e) for e in enrollments],
        total=len(enrollments),
    )


@router.delete(
    "/courses/{course_id}/students/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete enrollment (admin)",
)
async def delete_enrollment(
    course_id: UUID,
    student_id: UUID,
    enrollment_service: EnrollmentServiceDep,
    user: AdminUser,
) -> None:
    """Remove the enrollment and the student's consumption records."""
    await enrollment_service.delete_enrollment(user, student_id, course_id)
