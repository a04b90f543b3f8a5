"""
Supplier ledger parser.
Parses supplier listings (text) and period workbooks (one sheet per month)
into SupplierRecords keyed by document reference.
"""

from typing import Mapping, Optional, Sequence, Union
import logging
import re

from ..config import ReconConfig
from ..models.records import LedgerFormat, SheetSummary, SupplierRecord
from ..normalizers.currency import parse_currency
from ..normalizers.dates import month_from_name, normalize_date
from ..utils.exceptions import ExtractionError
from .pipeline import (
    DATE_SLASH,
    ExtractionPipeline,
    RawMovement,
    RecordDeduplicator,
    RegexStrategy,
    clean_description,
    ensure_records,
    ensure_text,
    join_pages,
    new_record_id,
    normalize_newlines,
)
from .tabular import (
    ColumnSpec,
    Row,
    TabularLayout,
    cell_text,
    get_cell,
    is_blank_row,
    is_total_label,
    locate_header,
)

logger = logging.getLogger(__name__)

LEDGER_AMOUNT = r"-?\d{1,3}(?:\.\d{3})*,\d{2}"
# Optional status flag at the start of a listing line ("P", "PTE", "*")
STATUS = r"(?:^(?P<status>[A-Z*]{1,4})[ \t]+)?"
LEDGER_FLAGS = re.IGNORECASE | re.MULTILINE

# Fecha | Codigo | Nombre | Documento | Referencia | Importe | Eur
LEDGER_STRATEGIES = (
    RegexStrategy(
        "document_and_reference",
        rf"{STATUS}(?P<date>{DATE_SLASH})\s+(?P<code>\d+)\s+(?P<name>.+?)\s+"
        rf"(?P<document>\d+/[A-Z]{{2,}}/\d+)\s+(?P<reference>[A-Z0-9/-]+)\s+"
        rf"(?P<amount>{LEDGER_AMOUNT})\s*Eur",
        LEDGER_FLAGS,
    ),
    # Alphanumeric documents such as FC-2024-001
    RegexStrategy(
        "alphanumeric_document",
        rf"{STATUS}(?P<date>{DATE_SLASH})\s+(?P<code>\d+)\s+(?P<name>.+?)\s+"
        rf"(?P<document>[A-Z]{{2,}}-?\d+[-/]?\d*)\s+(?P<reference>[A-Z0-9/-]+)\s+"
        rf"(?P<amount>{LEDGER_AMOUNT})\s*Eur",
        LEDGER_FLAGS,
    ),
    RegexStrategy(
        "flexible_document",
        rf"{STATUS}(?P<date>{DATE_SLASH})\s+(?P<code>\d+)\s+(?P<name>.+?)\s+"
        rf"(?P<document>[A-Z0-9]+/[A-Z]+/\d+)\s+(?P<reference>\S+)\s+"
        rf"(?P<amount>{LEDGER_AMOUNT})\s*Eur",
        LEDGER_FLAGS,
    ),
    # Document followed directly by the amount
    RegexStrategy(
        "document_without_reference",
        rf"{STATUS}(?P<date>{DATE_SLASH})\s+(?P<code>\d+)\s+(?P<name>.+?)\s+"
        rf"(?P<document>\d+/[A-Z]{{2,}}/\d+)\s+(?P<amount>{LEDGER_AMOUNT})\s*Eur",
        LEDGER_FLAGS,
    ),
)

# Còdic | Client/Previsió | Data fra. | Num. fra. | Venciment | IMPORT | ...
WORKBOOK_LAYOUT = TabularLayout(
    columns=(
        ColumnSpec("code", ("còdic", "codi", "código", "codigo", "code")),
        ColumnSpec(
            "name",
            ("client", "previsió", "cliente", "proveedor", "nombre", "supplier"),
            required=True,
        ),
        ColumnSpec("invoice_date", ("data fra", "fecha fra", "fecha factura", "data factura")),
        ColumnSpec("due_date", ("venciment", "vencimiento", "due date")),
        ColumnSpec(
            "document",
            ("num fra", "núm fra", "nº fra", "num factura", "número factura", "documento", "factura"),
        ),
        ColumnSpec("amount", ("import", "importe", "amount"), exact_only=True),
        ColumnSpec("fallback_date", ("fecha", "data", "date"), exact_only=True),
    ),
    min_optional_matches=2,
    min_cells=4,
    key_columns=("invoice_date", "document", "amount", "due_date"),
)

SHEET_PERIOD = re.compile(r"^(?:mes\s*:?\s*)?([^\W\d_]+)\s+(\d{4})$", re.IGNORECASE)

LedgerSource = Union[str, Sequence[str], Sequence[Row], Mapping[str, Sequence[Row]]]


class LedgerParser:
    """
    Parser for supplier ledgers.

    Handles text listings exported to PDF and multi-sheet workbooks where
    each sheet covers one reporting period.
    """

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config or ReconConfig()
        self.extraction = self.config.extraction

    @staticmethod
    def _dedup_key(record: SupplierRecord) -> tuple:
        return record.date, record.document, record.amount

    def parse_text(
        self, text: Union[str, Sequence[str]], source_file: str = ""
    ) -> list[SupplierRecord]:
        """
        Extract supplier records from a text listing.

        Args:
            text: Full text or page-level text of the listing
            source_file: Name of the originating file

        Returns:
            List of supplier records (empty if no strategy matched)
        """
        document = normalize_newlines(join_pages(text))

        def convert(raw: RawMovement) -> Optional[SupplierRecord]:
            return self._build_record(raw, source_file)

        pipeline: ExtractionPipeline[SupplierRecord] = ExtractionPipeline(
            LEDGER_STRATEGIES,
            convert=convert,
            dedup_key=self._dedup_key,
            label=f"ledger:{source_file or '<text>'}",
        )
        return pipeline.run(document)

    def _build_record(self, raw: RawMovement, source_file: str) -> Optional[SupplierRecord]:
        document = (raw.get("document") or "").strip()
        if not document:
            return None

        raw_amount = (raw.get("amount") or "").strip()
        status = raw.get("status")

        return SupplierRecord(
            id=new_record_id(),
            date=normalize_date(raw.get("date")),
            code=(raw.get("code") or "").strip(),
            name=clean_description(raw.get("name")),
            document=document,
            reference=(raw.get("reference") or "").strip(),
            raw_amount=raw_amount,
            amount=parse_currency(raw_amount),
            source_file=source_file,
            status=status.upper() if status else None,
        )

    def parse_rows(
        self, rows: Sequence[Row], source_file: str = "", sheet_name: str = ""
    ) -> list[SupplierRecord]:
        """
        Extract supplier records from one workbook sheet.

        Args:
            rows: Sheet rows
            source_file: Name of the originating file
            sheet_name: Name of the sheet (reporting period)

        Returns:
            List of supplier records
        """
        label = f"{source_file} - {sheet_name}" if sheet_name else source_file

        header = locate_header(rows, WORKBOOK_LAYOUT)
        if header is None:
            logger.warning(f"No header row found in sheet: {sheet_name or label}")
            return []
        header_index, columns = header
        logger.debug(f"Sheet {sheet_name or label} columns: {columns}")

        deduplicator: RecordDeduplicator[SupplierRecord] = RecordDeduplicator(self._dedup_key)
        records: list[SupplierRecord] = []
        for index in range(header_index + 1, len(rows)):
            record = self._build_row_record(rows[index], columns, label)
            if record is None:
                continue
            if not deduplicator.add(record):
                logger.debug(f"Row {index}: duplicate, skipping")
                continue
            records.append(record)

        logger.info(f"Sheet {sheet_name or label}: {len(records)} valid records")
        return records

    def _build_row_record(
        self, row: Row, columns: dict[str, int], label: str
    ) -> Optional[SupplierRecord]:
        if is_blank_row(row):
            return None

        name = get_cell(row, columns, "name")
        document = get_cell(row, columns, "document")
        raw_amount = get_cell(row, columns, "amount")

        if not name or not document or not raw_amount:
            return None
        if is_total_label(name):
            return None

        amount = parse_currency(raw_amount)
        if amount == 0:
            return None

        # Due date first, then invoice date, then the generic date column
        month_first = self.extraction.ledger_month_first
        record_date = ""
        for key in ("due_date", "invoice_date", "fallback_date"):
            candidate = get_cell(row, columns, key)
            if candidate:
                record_date = normalize_date(candidate, month_first=month_first)
                break

        return SupplierRecord(
            id=new_record_id(),
            date=record_date,
            code=get_cell(row, columns, "code"),
            name=clean_description(name),
            document=document,
            reference="",
            raw_amount=raw_amount,
            amount=amount,
            source_file=label,
        )

    def parse_sheets(
        self,
        sheets: Mapping[str, Sequence[Row]],
        source_file: str = "",
        selected_sheets: Optional[Sequence[str]] = None,
    ) -> list[SupplierRecord]:
        """
        Parse the selected sheets of a period workbook.

        Args:
            sheets: Mapping of sheet name to rows
            source_file: Name of the workbook file
            selected_sheets: Sheets to read (all sheets when None)

        Returns:
            Records of all selected sheets in selection order
        """
        names = list(selected_sheets) if selected_sheets is not None else list(sheets)
        records: list[SupplierRecord] = []

        for sheet_name in names:
            if sheet_name not in sheets:
                logger.warning(f"Sheet not found in {source_file or 'workbook'}: {sheet_name}")
                continue
            records.extend(self.parse_rows(sheets[sheet_name], source_file, sheet_name))

        logger.info(f"Total supplier records parsed from {source_file or 'workbook'}: {len(records)}")
        return records

    def describe_sheets(self, sheets: Mapping[str, Sequence[Row]]) -> list[SheetSummary]:
        """
        Summarize workbook sheets so a caller can choose reporting periods.

        Args:
            sheets: Mapping of sheet name to rows

        Returns:
            One summary per sheet, in workbook order
        """
        summaries = []
        for name, rows in sheets.items():
            month, year = sheet_period(rows, name)
            summaries.append(
                SheetSummary(
                    name=name,
                    month=month,
                    year=year,
                    record_count=count_valid_rows(rows),
                )
            )
        return summaries


def sheet_period(rows: Sequence[Row], sheet_name: str) -> tuple[str, str]:
    """
    Find the "MONTH YYYY" label in the first rows of a sheet.

    Returns:
        Tuple of (month, year); falls back to (sheet name, "")
    """
    for row in rows[:5]:
        for value in row or ():
            match = SHEET_PERIOD.match(cell_text(value))
            if match and len(match.group(1)) > 3 and month_from_name(match.group(1)):
                return match.group(1).upper(), match.group(2)
    return sheet_name, ""


def count_valid_rows(rows: Sequence[Row]) -> int:
    """Approximate number of ledger rows: a name plus a document or amount."""
    header = locate_header(rows, WORKBOOK_LAYOUT)
    if header is None:
        return 0
    header_index, columns = header

    count = 0
    for row in rows[header_index + 1:]:
        name = get_cell(row, columns, "name")
        if not name or is_total_label(name):
            continue
        if get_cell(row, columns, "document") or get_cell(row, columns, "amount"):
            count += 1
    return count


def _is_sheet_mapping(source: object) -> bool:
    return isinstance(source, Mapping)


def parse_ledger(
    source: LedgerSource,
    ledger_format: Union[LedgerFormat, str],
    source_file_name: str = "",
    selected_sheets: Optional[Sequence[str]] = None,
    config: Optional[ReconConfig] = None,
) -> list[SupplierRecord]:
    """
    Parse a supplier ledger into records.

    Args:
        source: Listing text, page texts, a single sheet's rows, or a
            mapping of sheet name to rows
        ledger_format: Declared ledger format (enum or its value)
        source_file_name: Name of the originating file
        selected_sheets: Sheets to read from a workbook (all when None)
        config: Optional configuration

    Returns:
        Non-empty list of supplier records

    Raises:
        ExtractionError: If the source is empty
        FormatMismatchError: If no records could be extracted
    """
    ledger_format = LedgerFormat(ledger_format)
    parser = LedgerParser(config)

    if ledger_format is LedgerFormat.SUPPLIER_LISTING:
        if _is_sheet_mapping(source) or (
            not isinstance(source, str) and any(not isinstance(p, str) for p in source)
        ):
            raise ExtractionError(
                "Supplier listings are parsed from text, not spreadsheet rows",
                file_name=source_file_name or None,
            )
        text = ensure_text(join_pages(source), source_file_name)
        records = parser.parse_text(text, source_file_name)
    else:
        if isinstance(source, str):
            raise ExtractionError(
                "Period workbooks are parsed from spreadsheet rows, not text",
                file_name=source_file_name or None,
            )
        sheets = source if _is_sheet_mapping(source) else {"": source}
        if all(is_blank_row(row) for rows in sheets.values() for row in rows):
            raise ExtractionError(
                "The workbook contains no data", file_name=source_file_name or None
            )
        records = parser.parse_sheets(sheets, source_file_name, selected_sheets)

    return ensure_records(records, source_file_name, "supplier ledger")


def describe_sheets(
    sheets: Mapping[str, Sequence[Row]], config: Optional[ReconConfig] = None
) -> list[SheetSummary]:
    """Summarize the sheets of a period workbook (see LedgerParser.describe_sheets)."""
    return LedgerParser(config).describe_sheets(sheets)
