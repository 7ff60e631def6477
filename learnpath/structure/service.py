"""Course structure service layer.

Business logic for:
- Adding, renaming and deleting sections
- Adding, updating and deleting content items
- Reordering sections and items
- Reading the ordered structure of a course

Every mutation runs under the course's structure lock and re-reads the
siblings inside it, so the order_index of a course's sections (and of a
section's items) is always 0..N-1. Deletions trigger a progress
recomputation for every enrollment of the course.
"""

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from learnpath.auth.schemas import AuthenticatedUser
from learnpath.core.exceptions import (
    ContentItemNotFoundError,
    CourseNotFoundError,
    SectionNotFoundError,
    ValidationError,
)
from learnpath.core.logging import get_logger
from learnpath.core.validation import require_text
from learnpath.courses.models import Course
from learnpath.courses.visibility import ensure_course_editable, ensure_course_visible

from .content import parse_content_data, parse_content_type
from .models import ContentItem, CourseStructure, Section
from .ordering import apply_permutation, compact, next_order_index, validate_permutation


if TYPE_CHECKING:
    from learnpath.core.locks import CourseLockManager
    from learnpath.courses.repository import CourseRepository
    from learnpath.progress.service import ProgressService

    from .repository import StructureRepository


logger = get_logger(__name__)

UPDATABLE_ITEM_FIELDS = frozenset({"title", "content_type", "content_data"})


class StructureService:
    """Service for the section/content-item hierarchy of courses."""

    def __init__(
        self,
        courses: "CourseRepository",
        structure: "StructureRepository",
        locks: "CourseLockManager",
        progress: "ProgressService",
    ):
        self.courses = courses
        self.structure = structure
        self.locks = locks
        self.progress = progress

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _get_course(self, course_id: UUID, actor: AuthenticatedUser | None) -> Course:
        course = self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError()
        if actor is not None:
            ensure_course_editable(actor, course)
        return course

    def _get_section(self, section_id: UUID) -> Section:
        section = self.structure.get_section(section_id)
        if section is None:
            raise SectionNotFoundError()
        return section

    def _get_item(self, item_id: UUID) -> ContentItem:
        item = self.structure.get_item(item_id)
        if item is None:
            raise ContentItemNotFoundError()
        return item

    def _section_items(self, course_id: UUID, section_id: UUID) -> list[ContentItem]:
        items = [
            item
            for item in self.structure.list_course_items(course_id)
            if item.section_id == section_id
        ]
        return sorted(items, key=lambda i: i.order_index)

    # ==========================================================================
    # Sections
    # ==========================================================================

    async def add_section(
        self,
        course_id: UUID,
        title: str,
        actor: AuthenticatedUser | None = None,
    ) -> Section:
        """Append a new section at the end of the course.

        Raises:
            CourseNotFoundError: If the course does not exist
            ValidationError: If the title is empty
        """
        title = require_text(title, "title")
        course = self._get_course(course_id, actor)

        async with self.locks.course_lock(course.id):
            sections = self.structure.list_sections(course.id)
            section = Section(
                course_id=course.id,
                title=title,
                order_index=next_order_index(sections),
            )
            self.structure.insert_section(section)

        logger.info(
            "section_added",
            course_id=str(course.id),
            section_id=str(section.id),
            order_index=section.order_index,
        )
        return section

    async def update_section(
        self,
        section_id: UUID,
        title: str,
        actor: AuthenticatedUser | None = None,
    ) -> Section:
        """Rename a section."""
        title = require_text(title, "title")
        section = self._get_section(section_id)
        self._get_course(section.course_id, actor)

        async with self.locks.course_lock(section.course_id):
            section = self._get_section(section_id)
            section.title = title
            self.structure.update_section(section)

        logger.info("section_updated", section_id=str(section.id))
        return section

    async def delete_section(
        self,
        section_id: UUID,
        actor: AuthenticatedUser | None = None,
    ) -> None:
        """Delete a section with all of its items and compact the rest."""
        section = self._get_section(section_id)
        course = self._get_course(section.course_id, actor)

        async with self.locks.course_lock(course.id):
            section = self._get_section(section_id)
            remaining = [
                s for s in self.structure.list_sections(course.id) if s.id != section.id
            ]
            resequenced = compact(remaining)
            items = self._section_items(course.id, section.id)
            self.structure.delete_section(section, items, resequenced)

        logger.info(
            "section_deleted",
            course_id=str(course.id),
            section_id=str(section.id),
            items_removed=len(items),
        )

        await self.progress.recompute_course(course.id)

    async def reorder_sections(
        self,
        course_id: UUID,
        ordered_section_ids: Sequence[UUID],
        actor: AuthenticatedUser | None = None,
    ) -> list[Section]:
        """Apply a full permutation of the course's sections.

        Raises:
            ValidationError: If the ids are not exactly the course's sections
        """
        course = self._get_course(course_id, actor)

        async with self.locks.course_lock(course.id):
            sections = self.structure.list_sections(course.id)
            validate_permutation((s.id for s in sections), ordered_section_ids)
            changed = apply_permutation(sections, ordered_section_ids)
            self.structure.save_section_order(course.id, changed)

        logger.info(
            "sections_reordered",
            course_id=str(course.id),
            moved=len(changed),
        )
        return sorted(sections, key=lambda s: s.order_index)

    # ==========================================================================
    # Content items
    # ==========================================================================

    async def add_content_item(
        self,
        section_id: UUID,
        title: str,
        content_type: str,
        content_data: Mapping[str, Any] | None,
        actor: AuthenticatedUser | None = None,
    ) -> ContentItem:
        """Append a new item at the end of a section.

        Raises:
            SectionNotFoundError: If the section does not exist
            ValidationError: If the title is empty or the content data does
                not match the content type
        """
        section = self._get_section(section_id)
        course = self._get_course(section.course_id, actor)

        title = require_text(title, "title")
        ctype = parse_content_type(content_type)
        data = parse_content_data(ctype, dict(content_data or {}))

        async with self.locks.course_lock(course.id):
            section = self._get_section(section_id)
            siblings = self._section_items(course.id, section.id)
            item = ContentItem(
                course_id=course.id,
                section_id=section.id,
                title=title,
                content_type=ctype,
                content_data=data,
                order_index=next_order_index(siblings),
            )
            self.structure.insert_item(item)

        logger.info(
            "content_item_added",
            course_id=str(course.id),
            section_id=str(section.id),
            item_id=str(item.id),
            content_type=ctype.value,
            order_index=item.order_index,
        )
        return item

    async def update_content_item(
        self,
        item_id: UUID,
        fields: Mapping[str, Any],
        actor: AuthenticatedUser | None = None,
    ) -> ContentItem:
        """Partially update an item.

        When the content type changes, the resulting content data (the new
        one if given, otherwise the stored one) must match the new type.
        """
        unknown = set(fields) - UPDATABLE_ITEM_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown content item fields",
                details={name: "not updatable" for name in sorted(unknown)},
            )

        item = self._get_item(item_id)
        self._get_course(item.course_id, actor)

        title = require_text(fields["title"], "title") if "title" in fields else None

        async with self.locks.course_lock(item.course_id):
            item = self._get_item(item_id)

            ctype = parse_content_type(fields.get("content_type") or item.content_type)
            if "content_type" in fields or "content_data" in fields:
                raw = (
                    fields["content_data"]
                    if "content_data" in fields
                    else item.content_data
                )
                item.content_data = parse_content_data(ctype, dict(raw or {}))
            item.content_type = ctype
            if title is not None:
                item.title = title

            item.updated_at = datetime.now(UTC)
            self.structure.update_item(item)

        logger.info(
            "content_item_updated",
            item_id=str(item.id),
            fields=sorted(fields),
        )
        return item

    async def delete_content_item(
        self,
        item_id: UUID,
        actor: AuthenticatedUser | None = None,
    ) -> None:
        """Delete an item, compact its siblings and recompute progress."""
        item = self._get_item(item_id)
        course = self._get_course(item.course_id, actor)

        async with self.locks.course_lock(course.id):
            item = self._get_item(item_id)
            siblings = [
                i for i in self._section_items(course.id, item.section_id)
                if i.id != item.id
            ]
            resequenced = compact(siblings)
            self.structure.delete_item(item, resequenced)

        logger.info(
            "content_item_deleted",
            course_id=str(course.id),
            section_id=str(item.section_id),
            item_id=str(item.id),
        )

        await self.progress.recompute_course(course.id)

    async def reorder_content_items(
        self,
        section_id: UUID,
        ordered_item_ids: Sequence[UUID],
        actor: AuthenticatedUser | None = None,
    ) -> list[ContentItem]:
        """Apply a full permutation of a section's items."""
        section = self._get_section(section_id)
        course = self._get_course(section.course_id, actor)

        async with self.locks.course_lock(course.id):
            section = self._get_section(section_id)
            items = self._section_items(course.id, section.id)
            validate_permutation((i.id for i in items), ordered_item_ids)
            changed = apply_permutation(items, ordered_item_ids)
            self.structure.save_item_order(course.id, changed)

        logger.info(
            "content_items_reordered",
            section_id=str(section.id),
            moved=len(changed),
        )
        return sorted(items, key=lambda i: i.order_index)

    # ==========================================================================
    # Reads
    # ==========================================================================

    def load_structure(self, course_id: UUID) -> CourseStructure:
        """Current structure snapshot without any visibility check."""
        return CourseStructure.build(
            course_id,
            self.structure.list_sections(course_id),
            self.structure.list_course_items(course_id),
        )

    async def get_course_structure(
        self,
        course_id: UUID,
        viewer: AuthenticatedUser | None = None,
    ) -> CourseStructure:
        """Ordered sections and items of a course, through the publication gate.

        Raises:
            CourseNotFoundError: If the course does not exist
            NotAvailableError: If the viewer may not see the course
        """
        course = self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError()
        ensure_course_visible(viewer, course)
        return self.load_structure(course.id)

    async def get_section(
        self,
        section_id: UUID,
        viewer: AuthenticatedUser | None = None,
    ) -> Section:
        section = self._get_section(section_id)
        course = self.courses.get(section.course_id)
        if course is None:
            raise CourseNotFoundError()
        ensure_course_visible(viewer, course)
        return section

    async def get_content_item(
        self,
        item_id: UUID,
        viewer: AuthenticatedUser | None = None,
    ) -> ContentItem:
        item = self._get_item(item_id)
        course = self.courses.get(item.course_id)
        if course is None:
            raise CourseNotFoundError()
        ensure_course_visible(viewer, course)
        return item
