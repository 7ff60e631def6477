"""Database models for consumption tracking.

Consumption records are the ground truth for progress: one row per
(student, course, item) saying whether the student completed the item.

Partition key (student_id, course_id) keeps a student's whole course
history in one partition, so a recomputation is a single read.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID


if TYPE_CHECKING:
    from cassandra.cluster import Row


CONSUMPTION_RECORDS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.consumption_records (
    student_id UUID,
    course_id UUID,
    item_id UUID,
    completed BOOLEAN,
    consumed_at TIMESTAMP,
    PRIMARY KEY ((student_id, course_id), item_id)
)
"""

PROGRESS_TABLES_CQL = [
    CONSUMPTION_RECORDS_TABLE_CQL,
]


@dataclass
class ConsumptionRecord:
    """Whether a student has completed one content item."""

    student_id: UUID
    course_id: UUID
    item_id: UUID
    completed: bool = True
    consumed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: "Row") -> "ConsumptionRecord":
        consumed_at = row.consumed_at
        if consumed_at is not None and consumed_at.tzinfo is None:
            consumed_at = consumed_at.replace(tzinfo=UTC)
        return cls(
            student_id=row.student_id,
            course_id=row.course_id,
            item_id=row.item_id,
            completed=bool(row.completed),
            consumed_at=consumed_at or datetime.now(UTC),
        )
