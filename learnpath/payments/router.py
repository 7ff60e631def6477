"""Payment webhook endpoint.

The payment provider reports status changes here. Only completed payments
create enrollments; pending and failed notifications are acknowledged so
the provider stops retrying them.
"""

from fastapi import APIRouter

from learnpath.core.exceptions import PaymentNotCompletedError
from learnpath.core.logging import get_logger
from learnpath.enrollments.dependencies import EnrollmentServiceDep

from .dependencies import WebhookAuth
from .schemas import PaymentWebhookEvent, PaymentWebhookResponse


logger = get_logger(__name__)

router = APIRouter(prefix="/v1/payments", tags=["payments"])


@router.post(
    "/webhook",
    response_model=PaymentWebhookResponse,
    dependencies=[WebhookAuth],
    summary="Payment status webhook",
)
async def payment_webhook(
    event: PaymentWebhookEvent,
    enrollment_service: EnrollmentServiceDep,
) -> PaymentWebhookResponse:
    logger.info(
        "payment_webhook_received",
        payment_id=event.payment_id,
        course_id=str(event.course_id),
        status=event.status.value,
    )

    try:
        enrollment = await enrollment_service.on_payment_completed(
            student_id=event.student_id,
            course_id=event.course_id,
            payment_id=event.payment_id,
            status=event.status,
        )
    except PaymentNotCompletedError:
        return PaymentWebhookResponse(received=True, enrollment_id=None)

    return PaymentWebhookResponse(received=True, enrollment_id=enrollment.id)
