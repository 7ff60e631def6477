"""Pydantic schemas for enrollments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import EnrollmentSource, EnrollmentStatus


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    course_id: UUID
    progress: int = Field(..., ge=0, le=100)
    status: EnrollmentStatus
    source: EnrollmentSource
    payment_id: str | None = None
    enrolled_at: datetime
    updated_at: datetime | None = None


class StudentEnrollmentResponse(EnrollmentResponse):
    """Dashboard entry: the enrollment plus a course summary."""

    course_title: str | None = None
    course_thumbnail_url: str | None = None


class EnrollmentListResponse(BaseModel):
    items: list[StudentEnrollmentResponse]
    total: int
    completed: int


class CourseRosterResponse(BaseModel):
    course_id: UUID
    items: list[EnrollmentResponse]
    total: int
