"""Course structure module.

Ordered sections of a course, each holding ordered, typed content items.
Sibling order_index values are always 0..N-1.
"""

from .models import (
    STRUCTURE_TABLES_CQL,
    ContentItem,
    ContentType,
    CourseStructure,
    Section,
)


__all__ = [
    "STRUCTURE_TABLES_CQL",
    "ContentItem",
    "ContentType",
    "CourseStructure",
    "Section",
]
