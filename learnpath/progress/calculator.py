"""Progress arithmetic."""

from collections.abc import Iterable
from uuid import UUID

from .models import ConsumptionRecord


def calculate_progress(total_items: int, completed_items: int) -> int:
    """Completion percentage, floored.

    An empty course is 0, never 100.

    Examples:
        >>> calculate_progress(3, 1)
        33
        >>> calculate_progress(3, 2)
        66
        >>> calculate_progress(0, 0)
        0
    """
    if total_items <= 0:
        return 0
    completed_items = max(0, min(completed_items, total_items))
    return (100 * completed_items) // total_items


def completed_item_ids(
    item_ids: Iterable[UUID],
    records: Iterable[ConsumptionRecord],
) -> set[UUID]:
    """Ids from ``item_ids`` that have a completed consumption record.

    Records of items that no longer exist are ignored.
    """
    done = {record.item_id for record in records if record.completed}
    return done.intersection(item_ids)
