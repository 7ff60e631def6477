"""Ordering helpers for sibling sequences.

Siblings (sections of a course, items of a section) always carry
``order_index`` values 0..N-1 without gaps or duplicates. These helpers
compute the new indexes; repositories persist them.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar
from uuid import UUID

from learnpath.core.exceptions import ValidationError


class Ordered(Protocol):
    id: UUID
    order_index: int


T = TypeVar("T", bound=Ordered)


def next_order_index(siblings: Sequence[Ordered]) -> int:
    """Index for a new element appended after ``siblings``."""
    return len(siblings)


def is_contiguous(siblings: Iterable[Ordered]) -> bool:
    indexes = sorted(s.order_index for s in siblings)
    return indexes == list(range(len(indexes)))


def compact(siblings: Iterable[T]) -> list[T]:
    """Renumber ``siblings`` to 0..N-1 keeping their relative order.

    Returns only the elements whose index changed.
    """
    changed = []
    for position, sibling in enumerate(sorted(siblings, key=lambda s: s.order_index)):
        if sibling.order_index != position:
            sibling.order_index = position
            changed.append(sibling)
    return changed


def validate_permutation(existing_ids: Iterable[UUID], ordered_ids: Sequence[UUID]) -> None:
    """Check that ``ordered_ids`` is a full permutation of ``existing_ids``.

    Raises:
        ValidationError: With the duplicated, missing and foreign ids.
    """
    expected = set(existing_ids)
    duplicates = sorted(
        str(item_id) for item_id, count in Counter(ordered_ids).items() if count > 1
    )
    given = set(ordered_ids)
    missing = sorted(str(i) for i in expected - given)
    unknown = sorted(str(i) for i in given - expected)

    details: dict[str, list[str]] = {}
    if duplicates:
        details["duplicates"] = duplicates
    if missing:
        details["missing"] = missing
    if unknown:
        details["unknown"] = unknown

    if details:
        raise ValidationError(
            "Reorder must list every existing sibling exactly once",
            code="invalid_permutation",
            details=details,
        )


def apply_permutation(siblings: Iterable[T], ordered_ids: Sequence[UUID]) -> list[T]:
    """Assign order_index from the position in ``ordered_ids``.

    ``ordered_ids`` must already be validated. Returns the elements whose
    index changed.
    """
    positions = {item_id: index for index, item_id in enumerate(ordered_ids)}
    changed = []
    for sibling in siblings:
        position = positions[sibling.id]
        if sibling.order_index != position:
            sibling.order_index = position
            changed.append(sibling)
    return changed
