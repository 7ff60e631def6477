"""Tests for the Cassandra repositories against a mocked session."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import Mock, patch
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from learnpath.core.exceptions import AlreadyEnrolledError
from learnpath.courses.models import Course
from learnpath.courses.repository import CassandraCourseRepository
from learnpath.enrollments.models import Enrollment
from learnpath.enrollments.repository import CassandraEnrollmentRepository
from learnpath.structure.models import ContentItem, ContentType, Section
from learnpath.structure.repository import CassandraStructureRepository


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    # Mock prepare to avoid actual statement preparation
    session.prepare = Mock(side_effect=lambda query: Mock(query_string=query))
    return session


def _result(one=None, rows=(), was_applied=True) -> Mock:
    result = Mock()
    result.one.return_value = one
    result.was_applied = was_applied
    result.__iter__ = Mock(return_value=iter(rows))
    return result


class TestCassandraEnrollmentRepository:
    """Tests for the enrollment repository."""

    def test_statements_use_keyspace(self, mock_session) -> None:
        CassandraEnrollmentRepository(mock_session, "test_keyspace")

        queries = [call.args[0] for call in mock_session.prepare.call_args_list]
        assert all("test_keyspace." in query for query in queries)
        assert any("IF NOT EXISTS" in query for query in queries)

    def test_insert_writes_both_tables(self, mock_session) -> None:
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock(return_value=_result(was_applied=True))
        enrollment = Enrollment(student_id=uuid4(), course_id=uuid4())

        repo.insert(enrollment)

        assert mock_session.execute.call_count == 2
        lwt_statement = mock_session.execute.call_args_list[0].args[0]
        assert "IF NOT EXISTS" in lwt_statement.query_string

    def test_insert_conflict(self, mock_session) -> None:
        """A lost lightweight transaction means the pair already exists."""
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock(return_value=_result(was_applied=False))

        with pytest.raises(AlreadyEnrolledError):
            repo.insert(Enrollment(student_id=uuid4(), course_id=uuid4()))

        assert mock_session.execute.call_count == 1

    def test_get_missing(self, mock_session) -> None:
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock(return_value=_result(one=None))

        assert repo.get(uuid4(), uuid4()) is None

    def test_get_maps_row(self, mock_session) -> None:
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        student_id, course_id = uuid4(), uuid4()
        row = Mock(
            enrollment_id=uuid4(),
            student_id=student_id,
            course_id=course_id,
            progress=40,
            source="payment",
            payment_id="pay_1",
            enrolled_at=datetime(2026, 1, 1),
            updated_at=None,
        )
        mock_session.execute = Mock(return_value=_result(one=row))

        enrollment = repo.get(student_id, course_id)

        assert enrollment.progress == 40
        assert enrollment.payment_id == "pay_1"
        assert enrollment.enrolled_at.tzinfo is UTC

    def test_update_progress_is_conditional(self, mock_session) -> None:
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock(return_value=_result(was_applied=True))
        enrollment = Enrollment(student_id=uuid4(), course_id=uuid4(), progress=50)

        assert repo.update_progress(enrollment) is True

        statements = [call.args[0] for call in mock_session.execute.call_args_list]
        assert len(statements) == 2
        assert all("IF EXISTS" in s.query_string for s in statements)

    def test_update_progress_after_delete(self, mock_session) -> None:
        """A deleted enrollment is not recreated by a late progress write."""
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock(return_value=_result(was_applied=False))
        enrollment = Enrollment(student_id=uuid4(), course_id=uuid4(), progress=50)

        assert repo.update_progress(enrollment) is False
        assert mock_session.execute.call_count == 1

    def test_index_for_student_is_plain_upsert(self, mock_session) -> None:
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock()
        enrollment = Enrollment(student_id=uuid4(), course_id=uuid4())

        repo.index_for_student(enrollment)

        statement, values = mock_session.execute.call_args.args
        assert "enrollments_by_student" in statement.query_string
        assert "IF" not in statement.query_string
        assert values[:3] == [enrollment.student_id, enrollment.course_id, enrollment.id]

    def test_listing_skips_incomplete_rows(self, mock_session) -> None:
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        course_id = uuid4()
        stray = Mock(
            enrollment_id=None,
            student_id=uuid4(),
            course_id=course_id,
            progress=40,
            source=None,
            payment_id=None,
            enrolled_at=None,
            updated_at=datetime(2026, 1, 1),
        )
        kept = Mock(
            enrollment_id=uuid4(),
            student_id=uuid4(),
            course_id=course_id,
            progress=0,
            source="free",
            payment_id=None,
            enrolled_at=datetime(2026, 1, 1),
            updated_at=None,
        )
        mock_session.execute = Mock(return_value=_result(rows=[stray, kept]))

        enrollments = repo.list_by_course(course_id)

        assert [e.id for e in enrollments] == [kept.enrollment_id]

    def test_get_incomplete_row(self, mock_session) -> None:
        repo = CassandraEnrollmentRepository(mock_session, "test_keyspace")
        stray = Mock(enrollment_id=None, source=None)
        mock_session.execute = Mock(return_value=_result(one=stray))

        assert repo.get(uuid4(), uuid4()) is None


class TestCassandraStructureRepository:
    """Tests for the structure repository."""

    def test_get_section_via_lookup(self, mock_session) -> None:
        repo = CassandraStructureRepository(mock_session, "test_keyspace")
        course_id, section_id = uuid4(), uuid4()
        lookup = Mock(course_id=course_id)
        row = Mock(
            section_id=section_id,
            course_id=course_id,
            title="Basics",
            order_index=2,
            created_at=datetime(2026, 1, 1, tzinfo=UTC),
        )
        mock_session.execute = Mock(side_effect=[_result(one=lookup), _result(one=row)])

        section = repo.get_section(section_id)

        assert section.id == section_id
        assert section.order_index == 2

    def test_get_section_unknown(self, mock_session) -> None:
        repo = CassandraStructureRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock(return_value=_result(one=None))

        assert repo.get_section(uuid4()) is None
        assert mock_session.execute.call_count == 1

    def test_delete_section_is_one_batch(self, mock_session) -> None:
        repo = CassandraStructureRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock()
        course_id = uuid4()
        section = Section(course_id=course_id, title="Gone", order_index=0)
        items = [
            ContentItem(
                course_id=course_id,
                section_id=section.id,
                title=f"i{n}",
                content_type=ContentType.TEXT,
                content_data={"text": "x"},
                order_index=n,
            )
            for n in range(2)
        ]
        resequenced = [Section(course_id=course_id, title="Next", order_index=0)]

        with patch("learnpath.structure.repository.BatchStatement") as batch_cls:
            repo.delete_section(section, items, resequenced)

        batch = batch_cls.return_value
        # two rows per item, two for the section, one per resequenced sibling
        assert batch.add.call_count == 7
        mock_session.execute.assert_called_once_with(batch)

    def test_empty_reorder_writes_nothing(self, mock_session) -> None:
        repo = CassandraStructureRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock()

        repo.save_section_order(uuid4(), [])
        repo.save_item_order(uuid4(), [])

        mock_session.execute.assert_not_called()

    def test_content_data_stored_as_json(self, mock_session) -> None:
        repo = CassandraStructureRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock()
        item = ContentItem(
            course_id=uuid4(),
            section_id=uuid4(),
            title="Clip",
            content_type=ContentType.VIDEO,
            content_data={"url": "https://cdn.example.com/v.mp4"},
        )

        with patch("learnpath.structure.repository.BatchStatement") as batch_cls:
            repo.insert_item(item)

        params = batch_cls.return_value.add.call_args_list[0].args[1]
        assert '{"url":"https://cdn.example.com/v.mp4"}' in params


class TestCassandraCourseRepository:
    def test_get_maps_row(self, mock_session) -> None:
        repo = CassandraCourseRepository(mock_session, "test_keyspace")
        course = Course(title="Pharma", price=Decimal("10.00"), created_by=uuid4())
        row = Mock(**{k: v for k, v in course.to_dict().items() if k != "is_free"})
        mock_session.execute = Mock(return_value=_result(one=row))

        loaded = repo.get(course.id)

        assert loaded.id == course.id
        assert loaded.is_free is False

    def test_get_missing(self, mock_session) -> None:
        repo = CassandraCourseRepository(mock_session, "test_keyspace")
        mock_session.execute = Mock(return_value=_result(one=None))

        assert repo.get(uuid4()) is None
