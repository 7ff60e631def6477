"""Course structure API endpoints.

Provides routes for:
- Reading a course's ordered structure
- Section create/rename/delete/reorder
- Content item create/update/delete/reorder
"""

from uuid import UUID

from fastapi import APIRouter, status

from learnpath.auth.dependencies import OptionalUser, StaffUser

from .dependencies import StructureServiceDep
from .schemas import (
    ContentItemResponse,
    CourseStructureResponse,
    CreateContentItemRequest,
    CreateSectionRequest,
    ReorderRequest,
    SectionResponse,
    UpdateContentItemRequest,
    UpdateSectionRequest,
)


course_structure_router = APIRouter(prefix="/v1/courses", tags=["structure"])
sections_router = APIRouter(prefix="/v1/sections", tags=["structure"])
items_router = APIRouter(prefix="/v1/items", tags=["structure"])


# ==============================================================================
# Course-level routes
# ==============================================================================


@course_structure_router.get(
    "/{course_id}/structure",
    response_model=CourseStructureResponse,
    summary="Get course structure",
)
async def get_course_structure(
    course_id: UUID,
    structure_service: StructureServiceDep,
    user: OptionalUser,
) -> CourseStructureResponse:
    """Sections and items in display order, if the caller may see the course."""
    structure = await structure_service.get_course_structure(course_id, user)
    return CourseStructureResponse.from_structure(structure)


@course_structure_router.post(
    "/{course_id}/sections",
    response_model=SectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add section",
)
async def add_section(
    course_id: UUID,
    data: CreateSectionRequest,
    structure_service: StructureServiceDep,
    user: StaffUser,
) -> SectionResponse:
    section = await structure_service.add_section(course_id, data.title, actor=user)
    return SectionResponse.model_validate(section)


@course_structure_router.put(
    "/{course_id}/sections/order",
    response_model=list[SectionResponse],
    summary="Reorder sections",
)
async def reorder_sections(
    course_id: UUID,
    data: ReorderRequest,
    structure_service: StructureServiceDep,
    user: StaffUser,
) -> list[SectionResponse]:
    """Apply a full permutation of the course's sections."""
    sections = await structure_service.reorder_sections(
        course_id, data.ordered_ids, actor=user
    )
    return [SectionResponse.model_validate(s) for s in sections]


# ==============================================================================
# Section routes
# ==============================================================================


@sections_router.get("/{section_id}", response_model=SectionResponse)
async def get_section(
    section_id: UUID,
    structure_service: StructureServiceDep,
    user: OptionalUser,
) -> SectionResponse:
    section = await structure_service.get_section(section_id, user)
    return SectionResponse.model_validate(section)


@sections_router.patch(
    "/{section_id}",
    response_model=SectionResponse,
    summary="Rename section",
)
async def update_section(
    section_id: UUID,
    data: UpdateSectionRequest,
    structure_service: StructureServiceDep,
    user: StaffUser,
) -> SectionResponse:
    section = await structure_service.update_section(section_id, data.title, actor=user)
    return SectionResponse.model_validate(section)


@sections_router.delete(
    "/{section_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete section",
)
async def delete_section(
    section_id: UUID,
    structure_service: StructureServiceDep,
    user: StaffUser,
) -> None:
    """Delete the section and all its items, then compact the remaining sections."""
    await structure_service.delete_section(section_id, actor=user)


@sections_router.post(
    "/{section_id}/items",
    response_model=ContentItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add content item",
)
async def add_content_item(
    section_id: UUID,
    data: CreateContentItemRequest,
    structure_service: StructureServiceDep,
    user: StaffUser,
) -> ContentItemResponse:
    item = await structure_service.add_content_item(
        section_id,
        data.title,
        data.content_type,
        data.content_data,
        actor=user,
    )
    return ContentItemResponse.model_validate(item)


@sections_router.put(
    "/{section_id}/items/order",
    response_model=list[ContentItemResponse],
    summary="Reorder content items",
)
async def reorder_content_items(
    section_id: UUID,
    data: ReorderRequest,
    structure_service: StructureServiceDep,
    user: StaffUser,
) -> list[ContentItemResponse]:
    items = await structure_service.reorder_content_items(
        section_id, data.ordered_ids, actor=user
    )
    return [ContentItemResponse.model_validate(i) for i in items]


# ==============================================================================
# Item routes
# ==============================================================================


@items_router.get("/{item_id}", response_model=ContentItemResponse)
async def get_content_item(
    item_id: UUID,
    structure_service: StructureServiceDep,
    user: OptionalUser,
) -> ContentItemResponse:
    item = await structure_service.get_content_item(item_id, user)
    return ContentItemResponse.model_validate(item)


@items_router.patch(
    "/{item_id}",
    response_model=ContentItemResponse,
    summary="Update content item",
)
async def update_content_item(
    item_id: UUID,
    data: UpdateContentItemRequest,
    structure_service: StructureServiceDep,
    user: StaffUser,
) -> ContentItemResponse:
    """Partial update; changing the type re-validates the content data."""
    item = await structure_service.update_content_item(
        item_id, data.model_dump(exclude_unset=True), actor=user
    )
    return ContentItemResponse.model_validate(item)


@items_router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete content item",
)
async def delete_content_item(
    item_id: UUID,
    structure_service: StructureServiceDep,
    user: StaffUser,
) -> None:
    await structure_service.delete_content_item(item_id, actor=user)
