"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("PAYMENT_WEBHOOK_SECRET", "test-webhook-secret")

from learnpath.auth.permissions import UserRole  # noqa: E402
from learnpath.auth.schemas import AuthenticatedUser  # noqa: E402
from learnpath.auth.security import create_access_token  # noqa: E402
from learnpath.core.locks import CourseLockManager  # noqa: E402
from learnpath.courses.models import Course  # noqa: E402
from learnpath.courses.service import CourseService  # noqa: E402
from learnpath.enrollments.service import EnrollmentService  # noqa: E402
from learnpath.main import create_app, wire_services  # noqa: E402
from learnpath.progress.service import ProgressService  # noqa: E402
from learnpath.structure.service import StructureService  # noqa: E402

from tests.fakes import FakeDatabase  # noqa: E402


WEBHOOK_SECRET = os.environ["PAYMENT_WEBHOOK_SECRET"]


# ==============================================================================
# Users
# ==============================================================================


@pytest.fixture
def author() -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid4(), role=UserRole.STAFF)


@pytest.fixture
def other_staff() -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid4(), role=UserRole.STAFF)


@pytest.fixture
def admin() -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid4(), role=UserRole.ADMIN)


@pytest.fixture
def student() -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid4(), role=UserRole.STUDENT)


def auth_headers(user: AuthenticatedUser) -> dict[str, str]:
    """Authorization header carrying a token for ``user``."""
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


# ==============================================================================
# Storage and services
# ==============================================================================


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def locks() -> CourseLockManager:
    return CourseLockManager(wait=1.0)


@pytest.fixture
def progress_service(db: FakeDatabase) -> ProgressService:
    return ProgressService(
        courses=db.courses,
        structure=db.structure,
        enrollments=db.enrollments,
        consumption=db.consumption,
    )


@pytest.fixture
def structure_service(
    db: FakeDatabase,
    locks: CourseLockManager,
    progress_service: ProgressService,
) -> StructureService:
    return StructureService(
        courses=db.courses,
        structure=db.structure,
        locks=locks,
        progress=progress_service,
    )


@pytest.fixture
def course_service(db: FakeDatabase, locks: CourseLockManager) -> CourseService:
    return CourseService(
        courses=db.courses,
        structure=db.structure,
        enrollments=db.enrollments,
        consumption=db.consumption,
        locks=locks,
    )


@pytest.fixture
def enrollment_service(db: FakeDatabase) -> EnrollmentService:
    return EnrollmentService(
        courses=db.courses,
        enrollments=db.enrollments,
        consumption=db.consumption,
    )


@pytest.fixture
def make_course(
    db: FakeDatabase, author: AuthenticatedUser
) -> Callable[..., Course]:
    """Factory storing a course directly in the fake database."""

    def _make(
        title: str = "Intro to Pharmacology",
        price: Decimal | int | str = 0,
        is_published: bool = True,
        created_by=None,
    ) -> Course:
        course = Course(
            title=title,
            price=Decimal(str(price)),
            is_published=is_published,
            created_by=created_by or author.id,
        )
        db.courses.insert(course)
        return course

    return _make


@pytest.fixture
def course(make_course) -> Course:
    """A published free course owned by ``author``."""
    return make_course()


# ==============================================================================
# HTTP
# ==============================================================================


@pytest.fixture
def app(db: FakeDatabase, locks: CourseLockManager):
    application = create_app()
    wire_services(
        application.state,
        courses=db.courses,
        structure=db.structure,
        enrollments=db.enrollments,
        consumption=db.consumption,
        locks=locks,
    )
    return application


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Test client over the in-memory stores."""
    with TestClient(app) as test_client:
        yield test_client
