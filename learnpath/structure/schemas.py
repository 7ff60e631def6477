"""Pydantic schemas for course structure."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import ContentType, CourseStructure


# ==============================================================================
# Sections
# ==============================================================================


class CreateSectionRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200, description="Section title")


class UpdateSectionRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200, description="Section title")


class ReorderRequest(BaseModel):
    """Full permutation of sibling ids, first id goes to position 0."""

    ordered_ids: list[UUID] = Field(..., description="Every sibling id exactly once")


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    order_index: int
    created_at: datetime


# ==============================================================================
# Content items
# ==============================================================================


class CreateContentItemRequest(BaseModel):
    """Content item creation request.

    ``content_data`` is checked against ``content_type`` by the service,
    so mismatches come back with per-field details.
    """

    title: str = Field(..., min_length=1, max_length=200)
    content_type: str = Field(..., description="text, video, image or pdf")
    content_data: dict[str, Any] = Field(default_factory=dict)


class UpdateContentItemRequest(BaseModel):
    """Partial content item update. Only the fields sent are changed."""

    title: str | None = Field(None, min_length=1, max_length=200)
    content_type: str | None = None
    content_data: dict[str, Any] | None = None


class ContentItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    section_id: UUID
    title: str
    content_type: ContentType
    content_data: dict[str, Any]
    order_index: int
    created_at: datetime
    updated_at: datetime | None = None


# ==============================================================================
# Structure
# ==============================================================================


class SectionOutlineResponse(SectionResponse):
    items: list[ContentItemResponse] = []


class CourseStructureResponse(BaseModel):
    course_id: UUID
    sections: list[SectionOutlineResponse]
    total_items: int

    @classmethod
    def from_structure(cls, structure: CourseStructure) -> "CourseStructureResponse":
        return cls(
            course_id=structure.course_id,
            sections=[
                SectionOutlineResponse(
                    **SectionResponse.model_validate(outline.section).model_dump(),
                    items=[
                        ContentItemResponse.model_validate(item)
                        for item in outline.items
                    ],
                )
                for outline in structure.sections
            ],
            total_items=structure.total_items,
        )
