"""LearnPath API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnpath.config import get_settings
from learnpath.core.context import get_request_id
from learnpath.core.database import init_cassandra, shutdown_cassandra
from learnpath.core.exceptions import LearnPathError, NotAvailableError
from learnpath.core.locks import CourseLockManager
from learnpath.core.logging import configure_structlog, get_logger
from learnpath.core.middleware import RequestContextMiddleware
from learnpath.core.redis import init_redis, shutdown_redis
from learnpath.courses.repository import CassandraCourseRepository
from learnpath.courses.router import router as courses_router
from learnpath.courses.service import CourseService
from learnpath.enrollments.repository import CassandraEnrollmentRepository
from learnpath.enrollments.router import router as enrollments_router
from learnpath.enrollments.service import EnrollmentService
from learnpath.health import router as health_router
from learnpath.payments.router import router as payments_router
from learnpath.progress.repository import CassandraConsumptionRepository
from learnpath.progress.router import router as progress_router
from learnpath.progress.service import ProgressService
from learnpath.structure.repository import CassandraStructureRepository
from learnpath.structure.router import (
    course_structure_router,
    items_router,
    sections_router,
)
from learnpath.structure.service import StructureService


if TYPE_CHECKING:
    from learnpath.courses.repository import CourseRepository
    from learnpath.enrollments.repository import EnrollmentRepository
    from learnpath.progress.repository import ConsumptionRepository
    from learnpath.structure.repository import StructureRepository


# Logging must be configured before any module-level logger is used
settings = get_settings()
configure_structlog(settings)

logger = get_logger(__name__)


def wire_services(
    state: Any,
    courses: "CourseRepository",
    structure: "StructureRepository",
    enrollments: "EnrollmentRepository",
    consumption: "ConsumptionRepository",
    locks: CourseLockManager,
) -> None:
    """Build the services over the given repositories and attach them to ``state``."""
    progress_service = ProgressService(
        courses=courses,
        structure=structure,
        enrollments=enrollments,
        consumption=consumption,
    )
    state.lock_manager = locks
    state.progress_service = progress_service
    state.course_service = CourseService(
        courses=courses,
        structure=structure,
        enrollments=enrollments,
        consumption=consumption,
        locks=locks,
    )
    state.structure_service = StructureService(
        courses=courses,
        structure=structure,
        locks=locks,
        progress=progress_service,
    )
    state.enrollment_service = EnrollmentService(
        courses=courses,
        enrollments=enrollments,
        consumption=consumption,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect the stores on startup and release them on shutdown.

    Skips store initialisation when services were wired before startup.
    """
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    if getattr(app.state, "structure_service", None) is not None:
        yield
        return

    # Redis is optional: without it structure locks are per-process
    redis_client = None
    if settings.redis_enabled:
        try:
            redis_client = await init_redis()
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running with in-process structure locks",
            )

    locks = CourseLockManager(
        redis=redis_client,
        timeout=settings.structure_lock_timeout_seconds,
        wait=settings.structure_lock_wait_seconds,
    )

    try:
        session = init_cassandra()
        keyspace = settings.cassandra_keyspace
        wire_services(
            app.state,
            courses=CassandraCourseRepository(session, keyspace),
            structure=CassandraStructureRepository(session, keyspace),
            enrollments=CassandraEnrollmentRepository(session, keyspace),
            consumption=CassandraConsumptionRepository(session, keyspace),
            locks=locks,
        )
        logger.info("services_initialized", distributed_locks=locks.distributed)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_redis()
    shutdown_cassandra()


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> ORJSONResponse:
    body: dict[str, Any] = {
        "error": True,
        "code": code,
        "message": message,
        "status_code": status_code,
        "request_id": getattr(request.state, "request_id", None) or get_request_id(),
    }
    if details:
        body["details"] = details
    return ORJSONResponse(status_code=status_code, content=body, headers=headers)


def _register_error_handlers(app: FastAPI) -> None:
    """Every error leaves as the same JSON envelope carrying the request id."""

    @app.exception_handler(LearnPathError)
    async def domain_exception_handler(
        request: Request, exc: LearnPathError
    ) -> ORJSONResponse:
        if isinstance(exc, NotAvailableError):
            # Indistinguishable from a missing course; the gate already logged it
            return _error_response(
                request, exc.status_code, "Course not found", "course_not_found"
            )
        logger.info(
            "domain_error",
            code=exc.code,
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )
        return _error_response(
            request, exc.status_code, exc.message, exc.code, exc.details
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
        )
        message = (
            "Internal server error"
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else str(exc.detail)
        )
        return _error_response(
            request,
            exc.status_code,
            message,
            "http_error",
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Body and path validation failures, keyed by dotted field location."""
        errors = exc.errors()
        logger.warning("request_invalid", errors=errors, path=request.url.path)
        details = {
            ".".join(str(part) for part in err.get("loc", [])): err.get(
                "msg", "Invalid value"
            )
            for err in errors
        }
        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation error",
            "validation_error",
            details,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred. Please try again later.",
            "internal_error",
        )


ROUTERS = (
    health_router,
    courses_router,
    course_structure_router,
    sections_router,
    items_router,
    enrollments_router,
    progress_router,
    payments_router,
)


def create_app() -> FastAPI:
    """Build the LearnPath application with middleware, handlers and routes."""
    settings = get_settings()
    docs = settings.is_development

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course structure, enrollment and progress API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
    )

    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    _register_error_handlers(app)

    for router in ROUTERS:
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"message": "LearnPath API", "version": settings.app_version}

    return app


app = create_app()
