"""Input checks shared by the services.

Request schemas already reject most bad input at the HTTP edge; services
repeat the checks because they are also called directly.
"""

from decimal import Decimal

from learnpath.core.exceptions import ValidationError


def require_text(value: str | None, field: str, max_length: int = 200) -> str:
    """Return ``value`` stripped, or raise if it is empty or too long."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required", details={field: "must not be empty"})
    if len(text) > max_length:
        raise ValidationError(
            f"{field} is too long",
            details={field: f"at most {max_length} characters"},
        )
    return text


def require_price(value: Decimal | int | str | None) -> Decimal:
    """Return ``value`` as a Decimal price >= 0."""
    if value is None:
        return Decimal("0")
    try:
        price = Decimal(str(value))
    except ArithmeticError:
        raise ValidationError(
            "price is not a number", details={"price": "must be a number"}
        ) from None
    if not price.is_finite() or price < 0:
        raise ValidationError(
            "price must not be negative", details={"price": "must be >= 0"}
        )
    return price
