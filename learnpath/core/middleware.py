"""Per-request context and access logging."""

import time
from collections.abc import Awaitable, Callable, Sequence

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from learnpath.core.context import clear_context, set_request_id


logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_DEFAULT_QUIET_PATHS = ("/health",)


def client_address(request: Request) -> str | None:
    """Best guess at the caller's address behind a reverse proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    if real_ip := request.headers.get("x-real-ip"):
        return real_ip
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the lifetime of a request and log its outcome.

    The id comes from the incoming ``X-Request-ID`` header when present and
    is echoed back on the response. Paths under ``exclude_paths`` (health
    probes by default) are served without access log lines.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: Sequence[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = tuple(exclude_paths or _DEFAULT_QUIET_PATHS)

    def _is_logged(self, path: str) -> bool:
        return self.log_requests and not path.startswith(self.exclude_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        started = time.perf_counter()
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        path = request.url.path
        log = logger.bind(method=request.method, path=path)
        logged = self._is_logged(path)
        if logged:
            log.info("request_started", client_ip=client_address(request))

        def elapsed() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        try:
            response = await call_next(request)
            if logged:
                emit = log.warning if response.status_code >= 400 else log.info
                emit(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=elapsed(),
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as exc:
            log.exception(
                "request_failed",
                error_type=type(exc).__name__,
                duration_ms=elapsed(),
            )
            raise
        finally:
            clear_context()


__all__ = ["REQUEST_ID_HEADER", "RequestContextMiddleware", "client_address"]
