"""Tests for typed content data."""

import pytest

from learnpath.core.exceptions import ValidationError
from learnpath.structure.content import parse_content_data, parse_content_type
from learnpath.structure.models import ContentType


class TestParseContentType:
    def test_accepts_enum_and_string(self) -> None:
        assert parse_content_type(ContentType.PDF) is ContentType.PDF
        assert parse_content_type("video") is ContentType.VIDEO

    def test_rejects_unknown(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_content_type("podcast")
        assert "content_type" in exc_info.value.details


class TestParseContentData:
    """Each content type accepts exactly its own shape."""

    def test_text(self) -> None:
        data = parse_content_data("text", {"text": "  Hello  "})
        assert data == {"text": "Hello"}

    @pytest.mark.parametrize("content_type", ["video", "image", "pdf"])
    def test_url_types(self, content_type: str) -> None:
        data = parse_content_data(
            content_type,
            {"url": "https://cdn.example.com/asset", "description": "Lesson 1"},
        )
        assert data == {
            "url": "https://cdn.example.com/asset",
            "description": "Lesson 1",
        }

    def test_text_requires_text(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_content_data("text", {"description": "no body"})
        assert "text" in exc_info.value.details

    def test_video_requires_url(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_content_data("video", {})
        assert "url" in exc_info.value.details

    def test_rejects_fields_of_other_variant(self) -> None:
        """A text item can not carry a url."""
        with pytest.raises(ValidationError) as exc_info:
            parse_content_data("text", {"text": "body", "url": "https://x"})
        assert "url" in exc_info.value.details

    def test_rejects_blank_required_field(self) -> None:
        with pytest.raises(ValidationError):
            parse_content_data("pdf", {"url": "   "})
