"""Tests for the course structure service."""

import asyncio
from uuid import uuid4

import pytest

from learnpath.core.exceptions import (
    ContentItemNotFoundError,
    CourseNotFoundError,
    ForbiddenError,
    NotAvailableError,
    SectionNotFoundError,
    ValidationError,
)
from learnpath.structure.models import ContentType
from learnpath.structure.ordering import is_contiguous


TEXT = {"text": "Read this"}
VIDEO = {"url": "https://cdn.example.com/v.mp4"}


async def _add_items(service, section_id, *titles):
    return [
        await service.add_content_item(section_id, title, "text", TEXT)
        for title in titles
    ]


class TestSections:
    """Adding, renaming and deleting sections."""

    @pytest.mark.asyncio
    async def test_sections_are_appended(self, structure_service, course) -> None:
        first = await structure_service.add_section(course.id, "Basics")
        second = await structure_service.add_section(course.id, "Advanced")

        assert (first.order_index, second.order_index) == (0, 1)

    @pytest.mark.asyncio
    async def test_title_is_required(self, structure_service, course) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await structure_service.add_section(course.id, "   ")
        assert exc_info.value.details == {"title": "must not be empty"}

    @pytest.mark.asyncio
    async def test_unknown_course(self, structure_service) -> None:
        with pytest.raises(CourseNotFoundError):
            await structure_service.add_section(uuid4(), "Basics")

    @pytest.mark.asyncio
    async def test_rename(self, structure_service, course, db) -> None:
        section = await structure_service.add_section(course.id, "Basics")
        await structure_service.update_section(section.id, " Fundamentals ")
        assert db.structure.get_section(section.id).title == "Fundamentals"

    @pytest.mark.asyncio
    async def test_delete_cascades_and_compacts(
        self, structure_service, course, db
    ) -> None:
        """Deleting a section removes its items and closes the index gap."""
        s0 = await structure_service.add_section(course.id, "A")
        s1 = await structure_service.add_section(course.id, "B")
        s2 = await structure_service.add_section(course.id, "C")
        items = await _add_items(structure_service, s1.id, "one", "two")
        kept = await _add_items(structure_service, s2.id, "three")

        await structure_service.delete_section(s1.id)

        sections = db.structure.list_sections(course.id)
        assert [s.id for s in sections] == [s0.id, s2.id]
        assert [s.order_index for s in sections] == [0, 1]
        for item in items:
            assert db.structure.get_item(item.id) is None
        assert db.structure.get_item(kept[0].id) is not None

    @pytest.mark.asyncio
    async def test_delete_unknown(self, structure_service) -> None:
        with pytest.raises(SectionNotFoundError):
            await structure_service.delete_section(uuid4())

    @pytest.mark.asyncio
    async def test_concurrent_adds_stay_contiguous(
        self, structure_service, course, db
    ) -> None:
        await asyncio.gather(
            *(structure_service.add_section(course.id, f"S{i}") for i in range(10))
        )
        sections = db.structure.list_sections(course.id)
        assert len(sections) == 10
        assert is_contiguous(sections)


class TestContentItems:
    """Adding, updating and deleting content items."""

    @pytest.mark.asyncio
    async def test_items_are_appended_per_section(
        self, structure_service, course
    ) -> None:
        a = await structure_service.add_section(course.id, "A")
        b = await structure_service.add_section(course.id, "B")

        first = await structure_service.add_content_item(a.id, "x", "text", TEXT)
        other = await structure_service.add_content_item(b.id, "y", "video", VIDEO)
        second = await structure_service.add_content_item(a.id, "z", "pdf", VIDEO)

        assert (first.order_index, second.order_index) == (0, 1)
        assert other.order_index == 0
        assert other.content_type is ContentType.VIDEO

    @pytest.mark.asyncio
    async def test_rejects_mismatched_content(
        self, structure_service, course, db
    ) -> None:
        section = await structure_service.add_section(course.id, "A")
        writes = db.structure.writes

        with pytest.raises(ValidationError):
            await structure_service.add_content_item(section.id, "x", "video", TEXT)
        assert db.structure.writes == writes

    @pytest.mark.asyncio
    async def test_unknown_section(self, structure_service) -> None:
        with pytest.raises(SectionNotFoundError):
            await structure_service.add_content_item(uuid4(), "x", "text", TEXT)

    @pytest.mark.asyncio
    async def test_update_title_only(self, structure_service, course, db) -> None:
        section = await structure_service.add_section(course.id, "A")
        item = await structure_service.add_content_item(section.id, "x", "text", TEXT)

        await structure_service.update_content_item(item.id, {"title": "Renamed"})

        stored = db.structure.get_item(item.id)
        assert stored.title == "Renamed"
        assert stored.content_data == TEXT
        assert stored.updated_at is not None

    @pytest.mark.asyncio
    async def test_type_change_requires_matching_data(
        self, structure_service, course, db
    ) -> None:
        section = await structure_service.add_section(course.id, "A")
        item = await structure_service.add_content_item(section.id, "x", "text", TEXT)

        with pytest.raises(ValidationError):
            await structure_service.update_content_item(
                item.id, {"content_type": "video"}
            )
        assert db.structure.get_item(item.id).content_type is ContentType.TEXT

        updated = await structure_service.update_content_item(
            item.id, {"content_type": "video", "content_data": VIDEO}
        )
        assert updated.content_type is ContentType.VIDEO
        assert db.structure.get_item(item.id).content_data == VIDEO

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields(
        self, structure_service, course
    ) -> None:
        section = await structure_service.add_section(course.id, "A")
        item = await structure_service.add_content_item(section.id, "x", "text", TEXT)

        with pytest.raises(ValidationError) as exc_info:
            await structure_service.update_content_item(item.id, {"order_index": 4})
        assert exc_info.value.details == {"order_index": "not updatable"}

    @pytest.mark.asyncio
    async def test_delete_compacts_siblings(
        self, structure_service, course, db
    ) -> None:
        section = await structure_service.add_section(course.id, "A")
        a, b, c = await _add_items(structure_service, section.id, "a", "b", "c")

        await structure_service.delete_content_item(a.id)

        remaining = sorted(
            db.structure.list_course_items(course.id), key=lambda i: i.order_index
        )
        assert [i.id for i in remaining] == [b.id, c.id]
        assert [i.order_index for i in remaining] == [0, 1]

    @pytest.mark.asyncio
    async def test_delete_unknown(self, structure_service) -> None:
        with pytest.raises(ContentItemNotFoundError):
            await structure_service.delete_content_item(uuid4())


class TestReorder:
    """Full-permutation reorders of sections and items."""

    @pytest.mark.asyncio
    async def test_reorder_sections(self, structure_service, course, db) -> None:
        a = await structure_service.add_section(course.id, "A")
        b = await structure_service.add_section(course.id, "B")
        c = await structure_service.add_section(course.id, "C")

        result = await structure_service.reorder_sections(course.id, [c.id, a.id, b.id])

        assert [s.id for s in result] == [c.id, a.id, b.id]
        assert [s.id for s in db.structure.list_sections(course.id)] == [
            c.id,
            a.id,
            b.id,
        ]

    @pytest.mark.asyncio
    async def test_partial_permutation_changes_nothing(
        self, structure_service, course, db
    ) -> None:
        a = await structure_service.add_section(course.id, "A")
        b = await structure_service.add_section(course.id, "B")
        writes = db.structure.writes

        with pytest.raises(ValidationError) as exc_info:
            await structure_service.reorder_sections(course.id, [b.id])

        assert exc_info.value.details == {"missing": [str(a.id)]}
        assert db.structure.writes == writes
        assert [s.id for s in db.structure.list_sections(course.id)] == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_reorder_items_rejects_foreign_item(
        self, structure_service, course
    ) -> None:
        a = await structure_service.add_section(course.id, "A")
        b = await structure_service.add_section(course.id, "B")
        (mine,) = await _add_items(structure_service, a.id, "mine")
        (foreign,) = await _add_items(structure_service, b.id, "foreign")

        with pytest.raises(ValidationError) as exc_info:
            await structure_service.reorder_content_items(a.id, [mine.id, foreign.id])
        assert exc_info.value.details == {"unknown": [str(foreign.id)]}

    @pytest.mark.asyncio
    async def test_reorder_items(self, structure_service, course) -> None:
        section = await structure_service.add_section(course.id, "A")
        x, y = await _add_items(structure_service, section.id, "x", "y")

        result = await structure_service.reorder_content_items(section.id, [y.id, x.id])

        assert [(i.id, i.order_index) for i in result] == [(y.id, 0), (x.id, 1)]

    @pytest.mark.asyncio
    async def test_reorder_empty_course(self, structure_service, course) -> None:
        assert await structure_service.reorder_sections(course.id, []) == []


class TestReads:
    """Structure reads through the publication gate."""

    @pytest.mark.asyncio
    async def test_structure_is_ordered(self, structure_service, course) -> None:
        a = await structure_service.add_section(course.id, "A")
        b = await structure_service.add_section(course.id, "B")
        (x,) = await _add_items(structure_service, b.id, "x")
        y, z = await _add_items(structure_service, a.id, "y", "z")
        await structure_service.reorder_sections(course.id, [b.id, a.id])

        structure = await structure_service.get_course_structure(course.id)

        assert [o.section.id for o in structure.sections] == [b.id, a.id]
        assert structure.item_ids == [x.id, y.id, z.id]
        assert structure.total_items == 3

    @pytest.mark.asyncio
    async def test_unpublished_hidden_from_students(
        self, structure_service, make_course, student
    ) -> None:
        draft = make_course(is_published=False)
        with pytest.raises(NotAvailableError):
            await structure_service.get_course_structure(draft.id, viewer=student)

    @pytest.mark.asyncio
    async def test_unpublished_visible_to_author(
        self, structure_service, make_course, author
    ) -> None:
        draft = make_course(is_published=False)
        structure = await structure_service.get_course_structure(draft.id, viewer=author)
        assert structure.total_items == 0

    @pytest.mark.asyncio
    async def test_items_of_unpublished_course_hidden(
        self, structure_service, make_course, student
    ) -> None:
        draft = make_course(is_published=False)
        section = await structure_service.add_section(draft.id, "A")
        (item,) = await _add_items(structure_service, section.id, "x")

        with pytest.raises(NotAvailableError):
            await structure_service.get_content_item(item.id, viewer=student)
        with pytest.raises(NotAvailableError):
            await structure_service.get_section(section.id, viewer=student)


class TestAuthoring:
    """Only the author or an admin may change structure."""

    @pytest.mark.asyncio
    async def test_other_staff_forbidden(
        self, structure_service, course, other_staff
    ) -> None:
        with pytest.raises(ForbiddenError):
            await structure_service.add_section(course.id, "A", actor=other_staff)

    @pytest.mark.asyncio
    async def test_admin_allowed(self, structure_service, course, admin) -> None:
        section = await structure_service.add_section(course.id, "A", actor=admin)
        assert section.order_index == 0

    @pytest.mark.asyncio
    async def test_other_staff_can_not_see_draft(
        self, structure_service, make_course, other_staff
    ) -> None:
        draft = make_course(is_published=False)
        with pytest.raises(NotAvailableError):
            await structure_service.add_section(draft.id, "A", actor=other_staff)
