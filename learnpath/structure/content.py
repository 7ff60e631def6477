"""Typed content data.

``content_data`` is a tagged union keyed by ``content_type``:

- text: ``{"text": ..., "description"?: ...}``
- video / image / pdf: ``{"url": ..., "description"?: ...}``

Unknown types, missing required fields and fields belonging to another
variant are rejected with a ``ValidationError`` carrying per-field detail.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from learnpath.core.exceptions import ValidationError

from .models import ContentType


class _ContentData(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    description: str | None = Field(None, max_length=5000)


class TextContent(_ContentData):
    text: str = Field(..., min_length=1)


class VideoContent(_ContentData):
    url: str = Field(..., min_length=1, max_length=2000)


class ImageContent(_ContentData):
    url: str = Field(..., min_length=1, max_length=2000)


class PdfContent(_ContentData):
    url: str = Field(..., min_length=1, max_length=2000)


CONTENT_DATA_MODELS: dict[ContentType, type[_ContentData]] = {
    ContentType.TEXT: TextContent,
    ContentType.VIDEO: VideoContent,
    ContentType.IMAGE: ImageContent,
    ContentType.PDF: PdfContent,
}


def parse_content_type(value: ContentType | str) -> ContentType:
    """Coerce ``value`` to a ContentType or raise ValidationError."""
    if isinstance(value, ContentType):
        return value
    try:
        return ContentType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown content type '{value}'",
            details={
                "content_type": f"must be one of: {', '.join(t.value for t in ContentType)}"
            },
        ) from None


def parse_content_data(
    content_type: ContentType | str,
    content_data: dict[str, Any] | None,
) -> dict[str, Any]:
    """Validate ``content_data`` against ``content_type``.

    Returns:
        The normalised payload (whitespace stripped, unset optionals dropped).

    Raises:
        ValidationError: If the shape does not match the type.
    """
    ctype = parse_content_type(content_type)
    model = CONTENT_DATA_MODELS[ctype]

    try:
        parsed = model.model_validate(content_data or {})
    except PydanticValidationError as e:
        details = {
            ".".join(str(part) for part in err["loc"]) or "content_data": err["msg"]
            for err in e.errors()
        }
        raise ValidationError(
            f"Invalid content data for {ctype.value} item",
            details=details,
        ) from e

    return parsed.model_dump(exclude_none=True)
