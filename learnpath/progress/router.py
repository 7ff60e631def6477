"""Progress API endpoints.

Provides routes for:
- Marking content items consumed
- Per-course progress detail
- On-demand recomputation
"""

from uuid import UUID

from fastapi import APIRouter

from learnpath.auth.dependencies import CurrentUser
from learnpath.enrollments.models import COMPLETE_PROGRESS, EnrollmentStatus

from .dependencies import ProgressServiceDep
from .schemas import ConsumeItemResponse, CourseProgressResponse, RecomputeResponse


router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.post(
    "/items/{item_id}/consume",
    response_model=ConsumeItemResponse,
    summary="Mark content item consumed",
)
async def consume_item(
    item_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ConsumeItemResponse:
    """Record completion of an item and return the recomputed progress."""
    return await progress_service.mark_item_consumed(user, item_id)


@router.get(
    "/courses/{course_id}",
    response_model=CourseProgressResponse,
    summary="Get my progress in a course",
)
async def get_course_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> CourseProgressResponse:
    return await progress_service.get_course_progress(user.id, course_id, viewer=user)


@router.post(
    "/courses/{course_id}/recompute",
    response_model=RecomputeResponse,
    summary="Recompute my progress in a course",
)
async def recompute_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> RecomputeResponse:
    progress = await progress_service.recompute_progress(user.id, course_id)
    return RecomputeResponse(
        course_id=course_id,
        student_id=user.id,
        progress=progress,
        status=(
            EnrollmentStatus.COMPLETED
            if progress >= COMPLETE_PROGRESS
            else EnrollmentStatus.ENROLLED
        ),
    )
