"""Course catalog module.

Provides:
- Course records (courses start unpublished, is_free derived from price)
- The publication gate deciding who can see a course
"""

from .models import COURSES_TABLES_CQL, Course


__all__ = [
    "COURSES_TABLES_CQL",
    "Course",
]
