"""Data models for reconciliation."""

from .records import (
    BankRecord,
    SupplierRecord,
    MatchedBankRecord,
    MatchStatus,
    ReconciliationStats,
    ReconciliationResult,
    SheetSummary,
    StatementFormat,
    LedgerFormat,
    STATEMENT_FORMAT_NAMES,
)

__all__ = [
    "BankRecord",
    "SupplierRecord",
    "MatchedBankRecord",
    "MatchStatus",
    "ReconciliationStats",
    "ReconciliationResult",
    "SheetSummary",
    "StatementFormat",
    "LedgerFormat",
    "STATEMENT_FORMAT_NAMES",
]
