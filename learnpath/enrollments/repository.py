# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Enrollment persistence.

Uniqueness of (student, course) is enforced by a lightweight transaction
on the ``enrollments`` table. The student-keyed copy is an idempotent
upsert, rewritten whenever an enrollment is confirmed again, so a lost
index write heals on the next attempt. Progress updates are conditional
(``IF EXISTS``) and never resurrect a deleted enrollment.
"""

from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from cassandra.query import BatchStatement, BatchType

from learnpath.core.exceptions import AlreadyEnrolledError
from learnpath.core.logging import get_logger

from .models import Enrollment


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class EnrollmentRepository(Protocol):
    def get(self, student_id: UUID, course_id: UUID) -> Enrollment | None: ...

    def insert(self, enrollment: Enrollment) -> None:
        """Insert ``enrollment``.

        Raises:
            AlreadyEnrolledError: If the (student, course) pair exists.
        """
        ...

    def index_for_student(self, enrollment: Enrollment) -> None:
        """Upsert the student-keyed copy of ``enrollment``."""
        ...

    def update_progress(self, enrollment: Enrollment) -> bool:
        """Store ``enrollment.progress``; False if the enrollment is gone."""
        ...

    def delete(self, enrollment: Enrollment) -> None: ...

    def list_by_student(self, student_id: UUID) -> list[Enrollment]: ...

    def list_by_course(self, course_id: UUID) -> list[Enrollment]: ...


class CassandraEnrollmentRepository:
    """Cassandra-backed enrollments with dual-write lookup table."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (course_id, student_id, enrollment_id, progress, source, payment_id,
             enrolled_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._insert_by_student = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_student
            (student_id, course_id, enrollment_id, progress, source, payment_id,
             enrolled_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_enrollment = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments "
            "WHERE course_id = ? AND student_id = ?"
        )
        self._list_by_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments WHERE course_id = ?"
        )
        self._list_by_student = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments_by_student WHERE student_id = ?"
        )
        # Conditional: a plain UPDATE would upsert a row without enrollment_id
        self._update_progress = self.session.prepare(
            f"UPDATE {self.keyspace}.enrollments SET progress = ?, updated_at = ? "
            "WHERE course_id = ? AND student_id = ? IF EXISTS"
        )
        self._update_progress_by_student = self.session.prepare(
            f"UPDATE {self.keyspace}.enrollments_by_student "
            "SET progress = ?, updated_at = ? "
            "WHERE student_id = ? AND course_id = ? IF EXISTS"
        )
        self._delete_enrollment = self.session.prepare(
            f"DELETE FROM {self.keyspace}.enrollments "
            "WHERE course_id = ? AND student_id = ?"
        )
        self._delete_by_student = self.session.prepare(
            f"DELETE FROM {self.keyspace}.enrollments_by_student "
            "WHERE student_id = ? AND course_id = ?"
        )

    def _row_values(self, enrollment: Enrollment) -> list:
        return [
            enrollment.id,
            enrollment.progress,
            enrollment.source.value,
            enrollment.payment_id,
            enrollment.enrolled_at,
            enrollment.updated_at,
        ]

    def _to_enrollments(self, rows, table: str) -> list[Enrollment]:
        enrollments = []
        for row in rows:
            if row.enrollment_id is None:
                # Left behind by an unconditional update racing a delete
                logger.warning(
                    "enrollment_row_incomplete",
                    table=table,
                    student_id=str(row.student_id),
                    course_id=str(row.course_id),
                )
                continue
            enrollments.append(Enrollment.from_row(row))
        return enrollments

    def get(self, student_id: UUID, course_id: UUID) -> Enrollment | None:
        row = self.session.execute(self._get_enrollment, [course_id, student_id]).one()
        if row is None or row.enrollment_id is None:
            return None
        return Enrollment.from_row(row)

    def insert(self, enrollment: Enrollment) -> None:
        result = self.session.execute(
            self._insert_enrollment,
            [enrollment.course_id, enrollment.student_id, *self._row_values(enrollment)],
        )
        if not result.was_applied:
            raise AlreadyEnrolledError()

        self.index_for_student(enrollment)

    def index_for_student(self, enrollment: Enrollment) -> None:
        self.session.execute(
            self._insert_by_student,
            [enrollment.student_id, enrollment.course_id, *self._row_values(enrollment)],
        )

    def update_progress(self, enrollment: Enrollment) -> bool:
        # Conditional updates on two tables can not share a batch
        result = self.session.execute(
            self._update_progress,
            [
                enrollment.progress,
                enrollment.updated_at,
                enrollment.course_id,
                enrollment.student_id,
            ],
        )
        if not result.was_applied:
            return False

        self.session.execute(
            self._update_progress_by_student,
            [
                enrollment.progress,
                enrollment.updated_at,
                enrollment.student_id,
                enrollment.course_id,
            ],
        )
        return True

    def delete(self, enrollment: Enrollment) -> None:
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(self._delete_by_student, [enrollment.student_id, enrollment.course_id])
        batch.add(self._delete_enrollment, [enrollment.course_id, enrollment.student_id])
        self.session.execute(batch)

    def list_by_student(self, student_id: UUID) -> list[Enrollment]:
        rows = self.session.execute(self._list_by_student, [student_id])
        return self._to_enrollments(rows, "enrollments_by_student")

    def list_by_course(self, course_id: UUID) -> list[Enrollment]:
        rows = self.session.execute(self._list_by_course, [course_id])
        return self._to_enrollments(rows, "enrollments")
