# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Consumption record persistence."""

from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from .models import ConsumptionRecord


if TYPE_CHECKING:
    from cassandra.cluster import Session


class ConsumptionRepository(Protocol):
    def upsert(self, record: ConsumptionRecord) -> None: ...

    def list_for_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> list[ConsumptionRecord]: ...

    def delete_for_enrollment(self, student_id: UUID, course_id: UUID) -> None: ...


class CassandraConsumptionRepository:
    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._upsert_record = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.consumption_records
            (student_id, course_id, item_id, completed, consumed_at)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._list_records = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.consumption_records "
            "WHERE student_id = ? AND course_id = ?"
        )
        self._delete_records = self.session.prepare(
            f"DELETE FROM {self.keyspace}.consumption_records "
            "WHERE student_id = ? AND course_id = ?"
        )

    def upsert(self, record: ConsumptionRecord) -> None:
        self.session.execute(
            self._upsert_record,
            [
                record.student_id,
                record.course_id,
                record.item_id,
                record.completed,
                record.consumed_at,
            ],
        )

    def list_for_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> list[ConsumptionRecord]:
        rows = self.session.execute(self._list_records, [student_id, course_id])
        return [ConsumptionRecord.from_row(row) for row in rows]

    def delete_for_enrollment(self, student_id: UUID, course_id: UUID) -> None:
        self.session.execute(self._delete_records, [student_id, course_id])
