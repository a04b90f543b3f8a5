"""Data models for extracted records and reconciliation results."""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from enum import Enum
from typing import Optional


class StatementFormat(Enum):
    """Bank statement layouts supported by the statement extractors."""

    BBVA = "bbva"
    CAIXABANK = "caixabank"
    SABADELL = "sabadell"
    SANTANDER = "santander"
    GENERIC_TABULAR = "generic_tabular"

    @property
    def display_name(self) -> str:
        return STATEMENT_FORMAT_NAMES[self]


STATEMENT_FORMAT_NAMES: dict[StatementFormat, str] = {
    StatementFormat.BBVA: "BBVA",
    StatementFormat.CAIXABANK: "CaixaBank",
    StatementFormat.SABADELL: "Banco Sabadell",
    StatementFormat.SANTANDER: "Banco Santander",
    StatementFormat.GENERIC_TABULAR: "Generic spreadsheet",
}


class LedgerFormat(Enum):
    """Supplier ledger layouts supported by the ledger extractors."""

    SUPPLIER_LISTING = "supplier_listing"  # Text listing (PDF export)
    PERIOD_WORKBOOK = "period_workbook"  # One sheet per reporting period


class MatchStatus(Enum):
    """Outcome of matching a bank record."""

    MATCHED = "matched"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class BankRecord:
    """
    One movement parsed from a bank statement.

    Dates are canonical DD/MM/YYYY strings and ``amount`` is always the
    normalized value of ``raw_amount``.
    """

    id: str
    posting_date: str
    value_date: str
    description: str
    raw_amount: str
    amount: Decimal
    balance: Optional[Decimal] = None
    source_file: str = ""
    source_format: Optional[StatementFormat] = None


@dataclass(frozen=True)
class SupplierRecord:
    """
    One entry parsed from a supplier ledger.

    ``document`` is the invoice reference used as the reconciliation key.
    """

    id: str
    date: str
    code: str
    name: str
    document: str
    reference: str
    raw_amount: str
    amount: Decimal
    source_file: str = ""
    status: Optional[str] = None


@dataclass(frozen=True)
class MatchedBankRecord(BankRecord):
    """Bank record annotated with the outcome of reconciliation."""

    matched_document: Optional[str] = None
    matched_supplier_name: Optional[str] = None
    matched_supplier_id: Optional[str] = None
    status: MatchStatus = MatchStatus.UNMATCHED
    match_tier: Optional[str] = None

    @classmethod
    def from_bank_record(
        cls,
        record: BankRecord,
        supplier: Optional[SupplierRecord] = None,
        match_tier: Optional[str] = None,
    ) -> "MatchedBankRecord":
        """Build a result row from a bank record and its supplier match (if any)."""
        base = {f.name: getattr(record, f.name) for f in fields(BankRecord)}
        if supplier is None:
            return cls(**base)
        return cls(
            **base,
            matched_document=supplier.document,
            matched_supplier_name=supplier.name,
            matched_supplier_id=supplier.id,
            status=MatchStatus.MATCHED,
            match_tier=match_tier,
        )

    @property
    def is_matched(self) -> bool:
        return self.status is MatchStatus.MATCHED


@dataclass(frozen=True)
class ReconciliationStats:
    """Summary statistics of one reconciliation run."""

    bank_record_count: int
    supplier_record_count: int
    matched_count: int
    unmatched_count: int
    match_percentage: float
    matches_by_tier: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ReconciliationResult:
    """Matched records plus statistics, the output of one reconcile call."""

    records: list[MatchedBankRecord]
    stats: ReconciliationStats

    @property
    def matched(self) -> list[MatchedBankRecord]:
        return [r for r in self.records if r.is_matched]

    @property
    def unmatched(self) -> list[MatchedBankRecord]:
        return [r for r in self.records if not r.is_matched]


@dataclass(frozen=True)
class SheetSummary:
    """Overview of one workbook sheet, used to let callers pick periods."""

    name: str
    month: str
    year: str
    record_count: int
