"""Database models for enrollments.

Cassandra table definitions for:
- enrollments: One row per (course, student), the uniqueness guard
- enrollments_by_student: Dual-written copy for the student dashboard
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4


if TYPE_CHECKING:
    from cassandra.cluster import Row


COMPLETE_PROGRESS = 100


class EnrollmentSource(str, Enum):
    """How the enrollment was created."""

    FREE = "free"  # Direct enrollment in a free course
    PAYMENT = "payment"  # Created by a completed payment


class EnrollmentStatus(str, Enum):
    """Derived from progress, never stored."""

    ENROLLED = "enrolled"
    COMPLETED = "completed"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition per course so the roster is a single-partition read, and
# INSERT ... IF NOT EXISTS guards (course_id, student_id) uniqueness
ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    course_id UUID,
    student_id UUID,
    enrollment_id UUID,
    progress INT,
    source TEXT,
    payment_id TEXT,
    enrolled_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (course_id, student_id)
)
"""

ENROLLMENTS_BY_STUDENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_student (
    student_id UUID,
    course_id UUID,
    enrollment_id UUID,
    progress INT,
    source TEXT,
    payment_id TEXT,
    enrolled_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (student_id, course_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_STUDENT_TABLE_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass
class Enrollment:
    """Links one student to one course and carries the derived progress."""

    student_id: UUID
    course_id: UUID
    source: EnrollmentSource = EnrollmentSource.FREE
    progress: int = 0
    payment_id: str | None = None
    id: UUID = field(default_factory=uuid4)
    enrolled_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    @property
    def status(self) -> EnrollmentStatus:
        if self.progress >= COMPLETE_PROGRESS:
            return EnrollmentStatus.COMPLETED
        return EnrollmentStatus.ENROLLED

    @classmethod
    def from_row(cls, row: "Row") -> "Enrollment":
        """Create instance from a row of either enrollment table."""
        return cls(
            id=row.enrollment_id,
            student_id=row.student_id,
            course_id=row.course_id,
            progress=row.progress or 0,
            source=EnrollmentSource(row.source),
            payment_id=row.payment_id,
            enrolled_at=ensure_utc_aware(row.enrolled_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at),
        )
