"""Tests for shared core helpers."""

from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError
from starlette.requests import Request

from learnpath.config.settings import Settings
from learnpath.core.context import (
    clear_context,
    get_context,
    set_request_id,
    set_viewer,
)
from learnpath.core.database.cassandra import replication_options
from learnpath.core.exceptions import (
    NotAvailableError,
    PaymentRequiredError,
    StructureLockTimeoutError,
    ValidationError,
)
from learnpath.core.logging import filter_sensitive_data
from learnpath.core.middleware import client_address
from learnpath.core.validation import require_price, require_text


DEV_SECRET = "dev-jwt-secret-key-change-in-production-32chars!"


class TestRequireText:
    def test_strips(self) -> None:
        assert require_text("  Intro ", "title") == "Intro"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty(self, value) -> None:
        with pytest.raises(ValidationError) as exc_info:
            require_text(value, "title")
        assert exc_info.value.details == {"title": "must not be empty"}

    def test_too_long(self) -> None:
        with pytest.raises(ValidationError):
            require_text("x" * 201, "title")


class TestRequirePrice:
    def test_defaults_to_free(self) -> None:
        assert require_price(None) == Decimal("0")

    def test_parses(self) -> None:
        assert require_price("19.90") == Decimal("19.90")

    @pytest.mark.parametrize("value", ["-1", "abc", "NaN"])
    def test_rejects(self, value: str) -> None:
        with pytest.raises(ValidationError):
            require_price(value)


class TestExceptions:
    """Error codes and statuses seen by clients."""

    @pytest.mark.parametrize(
        "error,status,code",
        [
            (NotAvailableError(), 404, "course_not_available"),
            (PaymentRequiredError(), 402, "payment_required"),
            (StructureLockTimeoutError(), 503, "structure_busy"),
        ],
    )
    def test_status_and_code(self, error, status: int, code: str) -> None:
        assert error.status_code == status
        assert error.code == code

    def test_to_dict(self) -> None:
        error = ValidationError("bad", details={"title": "required"})
        assert error.to_dict() == {
            "code": "validation_error",
            "message": "bad",
            "details": {"title": "required"},
        }


class TestContext:
    def test_viewer_and_request_id(self) -> None:
        try:
            rid = set_request_id("abc")
            set_viewer("user-1", "staff")
            assert rid == "abc"
            assert get_context() == {
                "request_id": "abc",
                "user_id": "user-1",
                "user_role": "staff",
            }
        finally:
            clear_context()
        assert get_context() == {}

    def test_generates_request_id(self) -> None:
        try:
            assert set_request_id()
        finally:
            clear_context()


def test_filter_sensitive_data() -> None:
    event = {
        "event": "payment_webhook_received",
        "webhook_secret": "s3cret",
        "authorization": "Bearer abc",
        "course_id": "42",
    }
    filtered = filter_sensitive_data(None, "info", event)
    assert filtered["webhook_secret"] == "***"
    assert filtered["authorization"] == "***"
    assert filtered["course_id"] == "42"


class TestSettings:
    def test_production_requires_real_secret(self) -> None:
        with pytest.raises(PydanticValidationError):
            Settings(environment="production", auth_secret_key=DEV_SECRET)

    def test_production_with_secret(self) -> None:
        settings = Settings(environment="production", auth_secret_key="x" * 40)
        assert settings.is_production

    def test_replication_outside_production(self) -> None:
        settings = Settings(environment="testing", cassandra_replication_factor=2)
        assert replication_options(settings) == (
            "{'class': 'SimpleStrategy', 'replication_factor': 2}"
        )

    def test_replication_in_production(self) -> None:
        settings = Settings(environment="production", auth_secret_key="x" * 40)
        assert "NetworkTopologyStrategy" in replication_options(settings)


def _request(headers: dict[str, str], client: tuple[str, int] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    }
    return Request(scope)


class TestClientAddress:
    def test_forwarded_for_first_hop(self) -> None:
        request = _request({"X-Forwarded-For": "1.2.3.4, 10.0.0.1"}, ("9.9.9.9", 1))
        assert client_address(request) == "1.2.3.4"

    def test_real_ip(self) -> None:
        assert client_address(_request({"X-Real-IP": "5.6.7.8"})) == "5.6.7.8"

    def test_socket_peer(self) -> None:
        assert client_address(_request({}, ("9.9.9.9", 1))) == "9.9.9.9"

    def test_unknown(self) -> None:
        assert client_address(_request({})) is None
