"""Pydantic schemas for the course catalog."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateCourseRequest(BaseModel):
    """Course creation request. Courses always start unpublished."""

    title: str = Field(..., min_length=1, max_length=200, description="Course title")
    description: str = Field("", max_length=5000, description="Course description")
    thumbnail_url: str | None = Field(
        None, max_length=2000, description="Opaque thumbnail reference"
    )
    price: Decimal = Field(Decimal("0"), ge=0, description="Price, 0 for free")


class UpdateCourseRequest(BaseModel):
    """Partial course update."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    thumbnail_url: str | None = Field(None, max_length=2000)
    price: Decimal | None = Field(None, ge=0)


class CourseResponse(BaseModel):
    """Course response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str = ""
    thumbnail_url: str | None = None
    price: Decimal
    is_free: bool
    is_published: bool
    created_by: UUID
    created_at: datetime
    updated_at: datetime | None = None


class CourseListResponse(BaseModel):
    items: list[CourseResponse]
    total: int
