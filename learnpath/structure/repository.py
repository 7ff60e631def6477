# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Course structure persistence.

Every structural mutation is written as one logged batch, so a delete
with its compaction, or a full reorder, is applied entirely or not at all.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from cassandra.query import BatchStatement, BatchType

from .models import ContentItem, Section


if TYPE_CHECKING:
    from cassandra.cluster import Session


class StructureRepository(Protocol):
    def get_section(self, section_id: UUID) -> Section | None: ...

    def list_sections(self, course_id: UUID) -> list[Section]: ...

    def get_item(self, item_id: UUID) -> ContentItem | None: ...

    def list_course_items(self, course_id: UUID) -> list[ContentItem]: ...

    def insert_section(self, section: Section) -> None: ...

    def update_section(self, section: Section) -> None: ...

    def delete_section(
        self,
        section: Section,
        items: Sequence[ContentItem],
        resequenced: Sequence[Section],
    ) -> None: ...

    def insert_item(self, item: ContentItem) -> None: ...

    def update_item(self, item: ContentItem) -> None: ...

    def delete_item(
        self, item: ContentItem, resequenced: Sequence[ContentItem]
    ) -> None: ...

    def save_section_order(
        self, course_id: UUID, sections: Sequence[Section]
    ) -> None: ...

    def save_item_order(
        self, course_id: UUID, items: Sequence[ContentItem]
    ) -> None: ...

    def delete_course_structure(self, course_id: UUID) -> None: ...


class CassandraStructureRepository:
    """Cassandra-backed sections and content items."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        # Sections
        self._get_section = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_sections "
            "WHERE course_id = ? AND section_id = ?"
        )
        self._list_sections = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_sections WHERE course_id = ?"
        )
        self._insert_section = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_sections
            (course_id, section_id, title, order_index, created_at)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._update_section_title = self.session.prepare(
            f"UPDATE {self.keyspace}.course_sections SET title = ? "
            "WHERE course_id = ? AND section_id = ?"
        )
        self._update_section_order = self.session.prepare(
            f"UPDATE {self.keyspace}.course_sections SET order_index = ? "
            "WHERE course_id = ? AND section_id = ?"
        )
        self._delete_section = self.session.prepare(
            f"DELETE FROM {self.keyspace}.course_sections "
            "WHERE course_id = ? AND section_id = ?"
        )
        self._delete_course_sections = self.session.prepare(
            f"DELETE FROM {self.keyspace}.course_sections WHERE course_id = ?"
        )

        # Section lookup
        self._get_section_lookup = self.session.prepare(
            f"SELECT course_id FROM {self.keyspace}.sections_by_id WHERE section_id = ?"
        )
        self._insert_section_lookup = self.session.prepare(
            f"INSERT INTO {self.keyspace}.sections_by_id (section_id, course_id) "
            "VALUES (?, ?)"
        )
        self._delete_section_lookup = self.session.prepare(
            f"DELETE FROM {self.keyspace}.sections_by_id WHERE section_id = ?"
        )

        # Items
        self._get_item = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_items "
            "WHERE course_id = ? AND item_id = ?"
        )
        self._list_course_items = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_items WHERE course_id = ?"
        )
        self._insert_item = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_items
            (course_id, item_id, section_id, title, content_type, content_data,
             order_index, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_item = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_items
            SET title = ?, content_type = ?, content_data = ?, updated_at = ?
            WHERE course_id = ? AND item_id = ?
        """)
        self._update_item_order = self.session.prepare(
            f"UPDATE {self.keyspace}.course_items SET order_index = ? "
            "WHERE course_id = ? AND item_id = ?"
        )
        self._delete_item = self.session.prepare(
            f"DELETE FROM {self.keyspace}.course_items "
            "WHERE course_id = ? AND item_id = ?"
        )
        self._delete_course_items = self.session.prepare(
            f"DELETE FROM {self.keyspace}.course_items WHERE course_id = ?"
        )

        # Item lookup
        self._get_item_lookup = self.session.prepare(
            f"SELECT course_id FROM {self.keyspace}.content_items_by_id WHERE item_id = ?"
        )
        self._insert_item_lookup = self.session.prepare(
            f"INSERT INTO {self.keyspace}.content_items_by_id "
            "(item_id, course_id, section_id) VALUES (?, ?, ?)"
        )
        self._delete_item_lookup = self.session.prepare(
            f"DELETE FROM {self.keyspace}.content_items_by_id WHERE item_id = ?"
        )

    # ==========================================================================
    # Reads
    # ==========================================================================

    def get_section(self, section_id: UUID) -> Section | None:
        lookup = self.session.execute(self._get_section_lookup, [section_id]).one()
        if not lookup:
            return None
        row = self.session.execute(
            self._get_section, [lookup.course_id, section_id]
        ).one()
        return Section.from_row(row) if row else None

    def list_sections(self, course_id: UUID) -> list[Section]:
        rows = self.session.execute(self._list_sections, [course_id])
        return sorted(
            (Section.from_row(row) for row in rows), key=lambda s: s.order_index
        )

    def get_item(self, item_id: UUID) -> ContentItem | None:
        lookup = self.session.execute(self._get_item_lookup, [item_id]).one()
        if not lookup:
            return None
        row = self.session.execute(self._get_item, [lookup.course_id, item_id]).one()
        return ContentItem.from_row(row) if row else None

    def list_course_items(self, course_id: UUID) -> list[ContentItem]:
        rows = self.session.execute(self._list_course_items, [course_id])
        return [ContentItem.from_row(row) for row in rows]

    # ==========================================================================
    # Sections
    # ==========================================================================

    def insert_section(self, section: Section) -> None:
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._insert_section,
            [
                section.course_id,
                section.id,
                section.title,
                section.order_index,
                section.created_at,
            ],
        )
        batch.add(self._insert_section_lookup, [section.id, section.course_id])
        self.session.execute(batch)

    def update_section(self, section: Section) -> None:
        self.session.execute(
            self._update_section_title, [section.title, section.course_id, section.id]
        )

    def delete_section(
        self,
        section: Section,
        items: Sequence[ContentItem],
        resequenced: Sequence[Section],
    ) -> None:
        """Remove a section with its items and renumber the remaining sections."""
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        for item in items:
            batch.add(self._delete_item, [item.course_id, item.id])
            batch.add(self._delete_item_lookup, [item.id])
        batch.add(self._delete_section, [section.course_id, section.id])
        batch.add(self._delete_section_lookup, [section.id])
        for sibling in resequenced:
            batch.add(
                self._update_section_order,
                [sibling.order_index, sibling.course_id, sibling.id],
            )
        self.session.execute(batch)

    def save_section_order(self, course_id: UUID, sections: Sequence[Section]) -> None:
        if not sections:
            return
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        for section in sections:
            batch.add(
                self._update_section_order, [section.order_index, course_id, section.id]
            )
        self.session.execute(batch)

    # ==========================================================================
    # Items
    # ==========================================================================

    def insert_item(self, item: ContentItem) -> None:
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._insert_item,
            [
                item.course_id,
                item.id,
                item.section_id,
                item.title,
                item.content_type.value,
                item.content_data_json(),
                item.order_index,
                item.created_at,
                item.updated_at,
            ],
        )
        batch.add(self._insert_item_lookup, [item.id, item.course_id, item.section_id])
        self.session.execute(batch)

    def update_item(self, item: ContentItem) -> None:
        self.session.execute(
            self._update_item,
            [
                item.title,
                item.content_type.value,
                item.content_data_json(),
                item.updated_at,
                item.course_id,
                item.id,
            ],
        )

    def delete_item(self, item: ContentItem, resequenced: Sequence[ContentItem]) -> None:
        """Remove an item and renumber its remaining siblings."""
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(self._delete_item, [item.course_id, item.id])
        batch.add(self._delete_item_lookup, [item.id])
        for sibling in resequenced:
            batch.add(
                self._update_item_order,
                [sibling.order_index, sibling.course_id, sibling.id],
            )
        self.session.execute(batch)

    def save_item_order(self, course_id: UUID, items: Sequence[ContentItem]) -> None:
        if not items:
            return
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        for item in items:
            batch.add(self._update_item_order, [item.order_index, course_id, item.id])
        self.session.execute(batch)

    def delete_course_structure(self, course_id: UUID) -> None:
        sections = self.list_sections(course_id)
        items = self.list_course_items(course_id)

        batch = BatchStatement(batch_type=BatchType.LOGGED)
        for item in items:
            batch.add(self._delete_item_lookup, [item.id])
        for section in sections:
            batch.add(self._delete_section_lookup, [section.id])
        batch.add(self._delete_course_items, [course_id])
        batch.add(self._delete_course_sections, [course_id])
        self.session.execute(batch)
