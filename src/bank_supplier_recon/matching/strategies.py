"""
Narrowing strategies for ambiguous amount matches.
Each strategy implements one date-based tier that picks a single supplier
record out of several with the same amount.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from ..models.records import BankRecord, SupplierRecord
from ..normalizers.dates import month_key, parse_date


class NarrowingStrategy(ABC):
    """Abstract base class for narrowing strategies."""

    name: str = ""

    def __init__(self, use_accounting_date: bool = True):
        """
        Initialize the strategy.

        Args:
            use_accounting_date: Also compare against the posting date when
                the value date gives no answer
        """
        self.use_accounting_date = use_accounting_date

    def reference_dates(self, bank_record: BankRecord) -> list[str]:
        """Bank dates to compare against, value date first."""
        dates = [bank_record.value_date]
        if self.use_accounting_date:
            dates.append(bank_record.posting_date)
        return dates

    @abstractmethod
    def select(
        self, bank_record: BankRecord, candidates: list[SupplierRecord]
    ) -> Optional[int]:
        """
        Pick one candidate for a bank record.

        Args:
            bank_record: Bank record being matched
            candidates: Supplier records whose amount matches, in pool order

        Returns:
            Index of the chosen candidate, or None to defer to the next tier
        """
        pass


def closest_to(target: Optional[date], candidates: list[SupplierRecord]) -> Optional[tuple[int, int]]:
    """
    Find the candidate dated nearest to a target date.

    Returns:
        Tuple of (candidate index, distance in days), or None when the target
        or every candidate date is unparseable. Ties keep the earliest candidate.
    """
    if target is None:
        return None

    best: Optional[tuple[int, int]] = None
    for index, supplier in enumerate(candidates):
        supplier_date = parse_date(supplier.date)
        if supplier_date is None:
            continue
        distance = abs((supplier_date - target).days)
        if best is None or distance < best[1]:
            best = (index, distance)
    return best


class ExactDateStrategy(NarrowingStrategy):
    """
    Exact date match - supplier date equals the value date, or the posting
    date when accounting dates are enabled.
    """

    name = "exact_date"

    def select(
        self, bank_record: BankRecord, candidates: list[SupplierRecord]
    ) -> Optional[int]:
        for reference in self.reference_dates(bank_record):
            target = parse_date(reference)
            if target is None:
                continue
            for index, supplier in enumerate(candidates):
                if parse_date(supplier.date) == target:
                    return index
        return None


class SameMonthStrategy(NarrowingStrategy):
    """
    Same calendar month as the value date (then the posting date), picking
    the nearest entry when several share the month.
    """

    name = "same_month"

    def select(
        self, bank_record: BankRecord, candidates: list[SupplierRecord]
    ) -> Optional[int]:
        for reference in self.reference_dates(bank_record):
            period = month_key(reference)
            if period is None:
                continue

            in_month = [i for i, s in enumerate(candidates) if month_key(s.date) == period]
            if not in_month:
                continue
            if len(in_month) == 1:
                return in_month[0]

            nearest = closest_to(parse_date(reference), [candidates[i] for i in in_month])
            return in_month[nearest[0]] if nearest else in_month[0]
        return None


class ClosestDateStrategy(NarrowingStrategy):
    """
    Nearest date among all amount candidates - last resort tier.

    Distances are measured to the value date and, when enabled, to the
    posting date; whichever bank date is closer wins.
    """

    name = "closest_date"

    def __init__(
        self, use_accounting_date: bool = True, max_distance_days: Optional[int] = None
    ):
        """
        Initialize with an optional distance cutoff.

        Args:
            use_accounting_date: Also measure distance to the posting date
            max_distance_days: Leave the record unmatched when the nearest
                candidate is further away than this (no limit when None)
        """
        super().__init__(use_accounting_date)
        self.max_distance_days = max_distance_days

    def select(
        self, bank_record: BankRecord, candidates: list[SupplierRecord]
    ) -> Optional[int]:
        best: Optional[tuple[int, int]] = None
        for reference in self.reference_dates(bank_record):
            nearest = closest_to(parse_date(reference), candidates)
            if nearest and (best is None or nearest[1] < best[1]):
                best = nearest

        if best is None:
            # No comparable dates; without a cutoff keep pool order
            if self.max_distance_days is None and candidates:
                return 0
            return None

        index, distance = best
        if self.max_distance_days is not None and distance > self.max_distance_days:
            return None
        return index
