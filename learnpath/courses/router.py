"""Course catalog API endpoints.

Provides routes for:
- Catalog listing through the publication gate
- Course CRUD for staff
- Publishing and unpublishing
- Administrative deletion
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from learnpath.auth.dependencies import AdminUser, OptionalUser, StaffUser

from .dependencies import CourseServiceDep
from .schemas import (
    CourseListResponse,
    CourseResponse,
    CreateCourseRequest,
    UpdateCourseRequest,
)


router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.get(
    "",
    response_model=CourseListResponse,
    summary="List visible courses",
)
async def list_courses(
    course_service: CourseServiceDep,
    user: OptionalUser,
    limit: int = Query(50, ge=1, le=200),
) -> CourseListResponse:
    """Catalog for the caller: published courses, plus own drafts for staff."""
    courses = await course_service.list_courses(user, limit=limit)
    return CourseListResponse(
        items=[CourseResponse.model_validate(c) for c in courses],
        total=len(courses),
    )


@router.get(
    "/mine",
    response_model=CourseListResponse,
    summary="List courses authored by the caller",
)
async def list_my_courses(
    course_service: CourseServiceDep,
    user: StaffUser,
    limit: int = Query(50, ge=1, le=200),
) -> CourseListResponse:
    courses = await course_service.list_authored_courses(user, limit=limit)
    return CourseListResponse(
        items=[CourseResponse.model_validate(c) for c in courses],
        total=len(courses),
    )


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: StaffUser,
) -> CourseResponse:
    """Create an unpublished course owned by the caller."""
    course = await course_service.create_course(data, user)
    return CourseResponse.model_validate(course)


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course",
)
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: OptionalUser,
) -> CourseResponse:
    course = course_service.get_visible_course(user, course_id)
    return CourseResponse.model_validate(course)


@router.patch(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Update course",
)
async def update_course(
    course_id: UUID,
    data: UpdateCourseRequest,
    course_service: CourseServiceDep,
    user: StaffUser,
) -> CourseResponse:
    """Update course fields. Price changes never affect existing enrollments."""
    course = await course_service.update_course(course_id, data, user)
    return CourseResponse.model_validate(course)


@router.post(
    "/{course_id}/publish",
    response_model=CourseResponse,
    summary="Publish course",
)
async def publish_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: StaffUser,
) -> CourseResponse:
    course = await course_service.set_published(course_id, True, user)
    return CourseResponse.model_validate(course)


@router.post(
    "/{course_id}/unpublish",
    response_model=CourseResponse,
    summary="Unpublish course",
)
async def unpublish_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: StaffUser,
) -> CourseResponse:
    course = await course_service.set_published(course_id, False, user)
    return CourseResponse.model_validate(course)


@router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course (admin)",
)
async def delete_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: AdminUser,
) -> None:
    """Delete a course with its structure, enrollments and progress."""
    await course_service.delete_course(course_id, user)
