"""Database models for the course catalog.

Cassandra table definitions for:
- courses: Main course table
- courses_by_author: Author's courses, newest first
- courses_by_publication: Published/unpublished partitions for catalog listing
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    thumbnail_url TEXT,
    price DECIMAL,
    is_published BOOLEAN,
    created_by UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COURSES_BY_AUTHOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_author (
    created_by UUID,
    created_at TIMESTAMP,
    course_id UUID,
    PRIMARY KEY (created_by, created_at, course_id)
) WITH CLUSTERING ORDER BY (created_at DESC, course_id ASC)
"""

COURSES_BY_PUBLICATION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_publication (
    is_published BOOLEAN,
    created_at TIMESTAMP,
    course_id UUID,
    PRIMARY KEY (is_published, created_at, course_id)
) WITH CLUSTERING ORDER BY (created_at DESC, course_id ASC)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSES_BY_AUTHOR_TABLE_CQL,
    COURSES_BY_PUBLICATION_TABLE_CQL,
]


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    ``is_free`` is derived from ``price`` and never stored, so the two
    can not disagree.

    Attributes:
        id: Unique identifier (UUID)
        title: Course title
        description: Course description
        thumbnail_url: Opaque cover image reference
        price: Price, zero for free courses
        is_published: Whether students can see the course
        created_by: Author's user ID
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        description: str = "",
        thumbnail_url: str | None = None,
        price: Decimal | None = None,
        is_published: bool = False,
        created_by: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description or ""
        self.thumbnail_url = thumbnail_url
        self.price = price if price is not None else Decimal("0")
        self.is_published = bool(is_published)
        self.created_by = created_by
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @property
    def is_free(self) -> bool:
        return self.price == 0

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title,
            description=row.description,
            thumbnail_url=row.thumbnail_url,
            price=row.price,
            is_published=row.is_published,
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "price": self.price,
            "is_free": self.is_free,
            "is_published": self.is_published,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        state = "published" if self.is_published else "unpublished"
        return f"<Course {self.title} ({state})>"
