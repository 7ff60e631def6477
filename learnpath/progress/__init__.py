"""Progress engine module.

Provides:
- Consumption records (ground truth per student and item)
- Progress derivation: floor(100 * completed / total), 0 for empty courses
"""

from .calculator import calculate_progress
from .models import PROGRESS_TABLES_CQL, ConsumptionRecord


__all__ = [
    "PROGRESS_TABLES_CQL",
    "ConsumptionRecord",
    "calculate_progress",
]
