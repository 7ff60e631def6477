"""FastAPI dependencies for the payment webhook."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from learnpath.config import Settings, get_settings


WEBHOOK_SECRET_HEADER = "X-Webhook-Secret"


async def verify_webhook_secret(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Check the shared secret sent by the payment provider.

    Raises:
        HTTPException(503): If no secret is configured
        HTTPException(401): If the header is missing
        HTTPException(403): If the secret does not match
    """
    if not settings.payments_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment webhook not configured",
        )

    provided = request.headers.get(WEBHOOK_SECRET_HEADER)
    if not provided:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Webhook secret required",
        )

    # Timing-safe comparison
    if not secrets.compare_digest(provided, settings.payment_webhook_secret or ""):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid webhook secret",
        )


WebhookAuth = Depends(verify_webhook_secret)
