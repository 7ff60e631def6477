"""Database models for course structure.

Cassandra table definitions for:
- course_sections: Sections of a course (one partition per course)
- sections_by_id: Section id -> course lookup
- course_items: Content items of a course (one partition per course)
- content_items_by_id: Item id -> course/section lookup

Sections and items of a course share the course partition, so every
reorder or compaction of one course is a single-partition batch.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import orjson


if TYPE_CHECKING:
    from cassandra.cluster import Row


class ContentType(str, Enum):
    """Kind of learnable material carried by a content item."""

    TEXT = "text"
    VIDEO = "video"
    IMAGE = "image"
    PDF = "pdf"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_SECTIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_sections (
    course_id UUID,
    section_id UUID,
    title TEXT,
    order_index INT,
    created_at TIMESTAMP,
    PRIMARY KEY (course_id, section_id)
)
"""

SECTIONS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.sections_by_id (
    section_id UUID PRIMARY KEY,
    course_id UUID
)
"""

COURSE_ITEMS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_items (
    course_id UUID,
    item_id UUID,
    section_id UUID,
    title TEXT,
    content_type TEXT,
    content_data TEXT,
    order_index INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (course_id, item_id)
)
"""

CONTENT_ITEMS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.content_items_by_id (
    item_id UUID PRIMARY KEY,
    course_id UUID,
    section_id UUID
)
"""

STRUCTURE_TABLES_CQL = [
    COURSE_SECTIONS_TABLE_CQL,
    SECTIONS_BY_ID_TABLE_CQL,
    COURSE_ITEMS_TABLE_CQL,
    CONTENT_ITEMS_BY_ID_TABLE_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class Section:
    """Ordered container of content items within one course."""

    course_id: UUID
    title: str
    order_index: int = 0
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: "Row") -> "Section":
        return cls(
            id=row.section_id,
            course_id=row.course_id,
            title=row.title,
            order_index=row.order_index,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
        )


@dataclass
class ContentItem:
    """A single piece of learnable material inside a section.

    ``content_data`` always matches ``content_type``; see
    :mod:`learnpath.structure.content`.
    """

    course_id: UUID
    section_id: UUID
    title: str
    content_type: ContentType
    content_data: dict[str, Any]
    order_index: int = 0
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "ContentItem":
        return cls(
            id=row.item_id,
            course_id=row.course_id,
            section_id=row.section_id,
            title=row.title,
            content_type=ContentType(row.content_type),
            content_data=orjson.loads(row.content_data) if row.content_data else {},
            order_index=row.order_index,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at),
        )

    def content_data_json(self) -> str:
        return orjson.dumps(self.content_data).decode()


@dataclass
class SectionOutline:
    """A section together with its items, both in display order."""

    section: Section
    items: list[ContentItem] = field(default_factory=list)


@dataclass
class CourseStructure:
    """Snapshot of a course's sections and items, ordered by order_index."""

    course_id: UUID
    sections: list[SectionOutline] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        course_id: UUID,
        sections: list[Section],
        items: list[ContentItem],
    ) -> "CourseStructure":
        """Group ``items`` under ``sections`` and sort both levels."""
        by_section: dict[UUID, list[ContentItem]] = {s.id: [] for s in sections}
        for item in items:
            if item.section_id in by_section:
                by_section[item.section_id].append(item)

        outlines = [
            SectionOutline(
                section=section,
                items=sorted(by_section[section.id], key=lambda i: i.order_index),
            )
            for section in sorted(sections, key=lambda s: s.order_index)
        ]
        return cls(course_id=course_id, sections=outlines)

    @property
    def items(self) -> list[ContentItem]:
        """All items in structure order (section order, then item order)."""
        return [item for outline in self.sections for item in outline.items]

    @property
    def item_ids(self) -> list[UUID]:
        return [item.id for item in self.items]

    @property
    def total_items(self) -> int:
        return sum(len(outline.items) for outline in self.sections)
