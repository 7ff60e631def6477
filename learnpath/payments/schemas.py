"""Pydantic schemas for the payment collaborator's webhook."""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentStatus(str, Enum):
    """Payment states reported by the payment provider."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentWebhookEvent(BaseModel):
    """Payment status notification."""

    payment_id: str = Field(..., min_length=1, max_length=200)
    student_id: UUID
    course_id: UUID
    status: PaymentStatus
    amount: Decimal | None = Field(None, ge=0)


class PaymentWebhookResponse(BaseModel):
    received: bool = True
    enrollment_id: UUID | None = None
