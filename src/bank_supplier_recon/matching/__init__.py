"""Matching engine and narrowing strategies."""

from .engine import (
    ReconciliationEngine,
    calculate_stats,
    override_matched_document,
    reconcile,
)
from .strategies import (
    NarrowingStrategy,
    ExactDateStrategy,
    SameMonthStrategy,
    ClosestDateStrategy,
)

__all__ = [
    "ReconciliationEngine",
    "calculate_stats",
    "override_matched_document",
    "reconcile",
    "NarrowingStrategy",
    "ExactDateStrategy",
    "SameMonthStrategy",
    "ClosestDateStrategy",
]
