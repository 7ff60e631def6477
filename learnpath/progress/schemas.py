"""Pydantic schemas for progress tracking."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from learnpath.enrollments.models import EnrollmentStatus


class ConsumeItemResponse(BaseModel):
    """Result of marking an item consumed."""

    course_id: UUID
    item_id: UUID
    progress: int = Field(..., ge=0, le=100)
    status: EnrollmentStatus
    consumed_at: datetime


class RecomputeResponse(BaseModel):
    course_id: UUID
    student_id: UUID
    progress: int = Field(..., ge=0, le=100)
    status: EnrollmentStatus


class SectionProgressResponse(BaseModel):
    section_id: UUID
    title: str
    order_index: int
    total_items: int
    completed_items: int
    consumed_item_ids: list[UUID] = []


class CourseProgressResponse(BaseModel):
    """Per-course progress detail for the student dashboard."""

    course_id: UUID
    student_id: UUID
    progress: int = Field(..., ge=0, le=100)
    status: EnrollmentStatus
    total_items: int
    completed_items: int
    sections: list[SectionProgressResponse]
    next_item_id: UUID | None = Field(
        None, description="First unconsumed item in structure order"
    )
    enrolled_at: datetime
