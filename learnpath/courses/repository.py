# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Course persistence.

``CourseRepository`` is the storage contract used by the services; the
Cassandra implementation dual-writes the lookup tables that back the
catalog listings.
"""

from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from cassandra.query import BatchStatement, BatchType

from .models import Course


if TYPE_CHECKING:
    from cassandra.cluster import Session


class CourseRepository(Protocol):
    def get(self, course_id: UUID) -> Course | None: ...

    def insert(self, course: Course) -> None: ...

    def update(self, course: Course, was_published: bool) -> None: ...

    def delete(self, course: Course) -> None: ...

    def list_all(self, limit: int) -> list[Course]: ...

    def list_by_publication(self, is_published: bool, limit: int) -> list[Course]: ...

    def list_by_author(self, author_id: UUID, limit: int) -> list[Course]: ...


class CassandraCourseRepository:
    """Cassandra-backed course storage."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._get_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, description, thumbnail_url, price, is_published,
             created_by, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_course = self.session.prepare(f"""
            UPDATE {self.keyspace}.courses
            SET title = ?, description = ?, thumbnail_url = ?, price = ?,
                is_published = ?, updated_at = ?
            WHERE id = ?
        """)
        self._delete_course = self.session.prepare(
            f"DELETE FROM {self.keyspace}.courses WHERE id = ?"
        )

        # Lookup tables
        self._insert_by_author = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses_by_author
            (created_by, created_at, course_id)
            VALUES (?, ?, ?)
        """)
        self._delete_by_author = self.session.prepare(
            f"DELETE FROM {self.keyspace}.courses_by_author "
            "WHERE created_by = ? AND created_at = ? AND course_id = ?"
        )
        self._get_by_author = self.session.prepare(
            f"SELECT course_id FROM {self.keyspace}.courses_by_author "
            "WHERE created_by = ? LIMIT ?"
        )
        self._insert_by_publication = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses_by_publication
            (is_published, created_at, course_id)
            VALUES (?, ?, ?)
        """)
        self._delete_by_publication = self.session.prepare(
            f"DELETE FROM {self.keyspace}.courses_by_publication "
            "WHERE is_published = ? AND created_at = ? AND course_id = ?"
        )
        self._get_by_publication = self.session.prepare(
            f"SELECT course_id FROM {self.keyspace}.courses_by_publication "
            "WHERE is_published = ? LIMIT ?"
        )

    def get(self, course_id: UUID) -> Course | None:
        row = self.session.execute(self._get_course, [course_id]).one()
        return Course.from_row(row) if row else None

    def insert(self, course: Course) -> None:
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._insert_course,
            [
                course.id,
                course.title,
                course.description,
                course.thumbnail_url,
                course.price,
                course.is_published,
                course.created_by,
                course.created_at,
                course.updated_at,
            ],
        )
        batch.add(
            self._insert_by_author, [course.created_by, course.created_at, course.id]
        )
        batch.add(
            self._insert_by_publication,
            [course.is_published, course.created_at, course.id],
        )
        self.session.execute(batch)

    def update(self, course: Course, was_published: bool) -> None:
        """Persist course fields, moving the publication lookup row if needed."""
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._update_course,
            [
                course.title,
                course.description,
                course.thumbnail_url,
                course.price,
                course.is_published,
                course.updated_at,
                course.id,
            ],
        )
        if was_published != course.is_published:
            batch.add(
                self._delete_by_publication,
                [was_published, course.created_at, course.id],
            )
            batch.add(
                self._insert_by_publication,
                [course.is_published, course.created_at, course.id],
            )
        self.session.execute(batch)

    def delete(self, course: Course) -> None:
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._delete_by_publication,
            [course.is_published, course.created_at, course.id],
        )
        batch.add(
            self._delete_by_author, [course.created_by, course.created_at, course.id]
        )
        batch.add(self._delete_course, [course.id])
        self.session.execute(batch)

    def list_all(self, limit: int) -> list[Course]:
        cql = f"SELECT * FROM {self.keyspace}.courses LIMIT {int(limit)}"
        rows = self.session.execute(cql)
        return [Course.from_row(row) for row in rows]

    def list_by_publication(self, is_published: bool, limit: int) -> list[Course]:
        rows = self.session.execute(self._get_by_publication, [is_published, limit])
        return self._load(row.course_id for row in rows)

    def list_by_author(self, author_id: UUID, limit: int) -> list[Course]:
        rows = self.session.execute(self._get_by_author, [author_id, limit])
        return self._load(row.course_id for row in rows)

    def _load(self, course_ids) -> list[Course]:
        courses = []
        for course_id in course_ids:
            course = self.get(course_id)
            if course:
                courses.append(course)
        return courses
