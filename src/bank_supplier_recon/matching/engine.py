"""
Tiered matching engine for bank/supplier reconciliation.
Assigns each bank record at most one supplier record, narrowing ambiguous
amount matches through date-based strategies in priority order.
"""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
import logging

from ..config import MatchingOptions
from ..models.records import (
    BankRecord,
    MatchedBankRecord,
    MatchStatus,
    ReconciliationResult,
    ReconciliationStats,
    SupplierRecord,
)
from ..normalizers.currency import amounts_match
from ..utils.exceptions import RecordNotFoundError
from .strategies import (
    ClosestDateStrategy,
    ExactDateStrategy,
    NarrowingStrategy,
    SameMonthStrategy,
)

logger = logging.getLogger(__name__)

UNIQUE_AMOUNT_TIER = "unique_amount"
MANUAL_TIER = "manual"


class ReconciliationEngine:
    """
    Main reconciliation engine.

    Bank records are processed in input order against a shrinking pool of
    supplier records. A supplier record is removed from the pool as soon as
    it is assigned, so each one backs at most one bank record.
    """

    def __init__(self, options: Optional[MatchingOptions] = None):
        """
        Initialize the reconciliation engine.

        Args:
            options: Matching options (defaults when None)
        """
        self.options = options or MatchingOptions()
        self.tolerance = Decimal(str(self.options.amount_tolerance))
        self.strategies = self._build_strategies()

    def _build_strategies(self) -> list[NarrowingStrategy]:
        """
        Build the narrowing tiers from the options.

        Returns:
            Strategies ordered by priority
        """
        use_accounting = self.options.use_accounting_date
        return [
            ExactDateStrategy(use_accounting),
            SameMonthStrategy(use_accounting),
            ClosestDateStrategy(use_accounting, self.options.max_date_distance_days),
        ]

    def reconcile(
        self,
        bank_records: Sequence[BankRecord],
        supplier_records: Sequence[SupplierRecord],
    ) -> ReconciliationResult:
        """
        Match bank records against supplier records.

        Args:
            bank_records: Bank movements, in statement order
            supplier_records: Supplier ledger entries

        Returns:
            One MatchedBankRecord per bank record, plus statistics
        """
        start_time = datetime.now()
        logger.info(
            f"Starting reconciliation: {len(bank_records)} bank records, "
            f"{len(supplier_records)} supplier records"
        )

        pool = list(supplier_records)
        results: list[MatchedBankRecord] = []

        for bank_record in bank_records:
            supplier, tier = self._match_one(bank_record, pool)
            results.append(MatchedBankRecord.from_bank_record(bank_record, supplier, tier))

        stats = calculate_stats(results, len(supplier_records))

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Reconciliation complete in {elapsed:.2f}s: {stats.matched_count} matched, "
            f"{stats.unmatched_count} unmatched ({stats.match_percentage:.1f}%)"
        )
        for tier, count in stats.matches_by_tier.items():
            logger.debug(f"Tier {tier}: {count} matches")

        return ReconciliationResult(records=results, stats=stats)

    def _match_one(
        self, bank_record: BankRecord, pool: list[SupplierRecord]
    ) -> tuple[Optional[SupplierRecord], Optional[str]]:
        """
        Find and consume the supplier record for one bank record.

        Returns:
            Tuple of (supplier record, tier name), or (None, None)
        """
        positions = [
            i for i, supplier in enumerate(pool)
            if amounts_match(supplier.amount, bank_record.amount, self.tolerance)
        ]

        if not positions:
            return None, None

        if len(positions) == 1:
            return pool.pop(positions[0]), UNIQUE_AMOUNT_TIER

        candidates = [pool[i] for i in positions]
        for strategy in self.strategies:
            chosen = strategy.select(bank_record, candidates)
            if chosen is not None:
                logger.debug(
                    f"Bank record {bank_record.id}: {len(candidates)} candidates, "
                    f"resolved by {strategy.name}"
                )
                return pool.pop(positions[chosen]), strategy.name

        logger.debug(
            f"Bank record {bank_record.id}: {len(candidates)} candidates, "
            f"none within date limits"
        )
        return None, None


def reconcile(
    bank_records: Sequence[BankRecord],
    supplier_records: Sequence[SupplierRecord],
    options: Optional[MatchingOptions] = None,
) -> ReconciliationResult:
    """Reconcile bank records against supplier records with the given options."""
    return ReconciliationEngine(options).reconcile(bank_records, supplier_records)


def calculate_stats(
    records: Sequence[MatchedBankRecord], supplier_record_count: int
) -> ReconciliationStats:
    """
    Compute reconciliation statistics.

    Args:
        records: Matched bank records
        supplier_record_count: Number of supplier records offered for matching

    Returns:
        Statistics with the match percentage (0 when there are no records)
    """
    matched = [r for r in records if r.is_matched]
    total = len(records)

    tier_counts: dict[str, int] = {}
    for record in matched:
        tier = record.match_tier or MANUAL_TIER
        tier_counts[tier] = tier_counts.get(tier, 0) + 1

    return ReconciliationStats(
        bank_record_count=total,
        supplier_record_count=supplier_record_count,
        matched_count=len(matched),
        unmatched_count=total - len(matched),
        match_percentage=(len(matched) / total * 100) if total else 0.0,
        matches_by_tier=tier_counts,
    )


def override_matched_document(
    records: Sequence[MatchedBankRecord], record_id: str, new_document: str
) -> list[MatchedBankRecord]:
    """
    Manually set the matched document of one record.

    A blank document clears the match. A different document drops the
    matched supplier, which does not own it. The input list is not modified.

    Args:
        records: Current matched records
        record_id: Id of the bank record to change
        new_document: Document reference to assign

    Returns:
        New list with the updated record in place

    Raises:
        RecordNotFoundError: If no record has the given id
    """
    if not any(r.id == record_id for r in records):
        raise RecordNotFoundError(f"No bank record with id {record_id}")

    document = (new_document or "").strip()
    updated: list[MatchedBankRecord] = []
    for record in records:
        if record.id != record_id:
            updated.append(record)
        elif document:
            same_document = document == record.matched_document
            updated.append(
                replace(
                    record,
                    matched_document=document,
                    matched_supplier_name=record.matched_supplier_name if same_document else None,
                    matched_supplier_id=record.matched_supplier_id if same_document else None,
                    status=MatchStatus.MATCHED,
                    match_tier=MANUAL_TIER,
                )
            )
        else:
            updated.append(
                replace(
                    record,
                    matched_document=None,
                    matched_supplier_name=None,
                    matched_supplier_id=None,
                    status=MatchStatus.UNMATCHED,
                    match_tier=None,
                )
            )

    logger.info(f"Matched document of record {record_id} set to {document or '<none>'}")
    return updated
