"""
Bank statement parser.
Turns statement text or spreadsheet rows into deduplicated BankRecords.
"""

from typing import Any, Optional, Sequence, Union
import logging
import re

from ..config import ReconConfig
from ..models.records import BankRecord, StatementFormat
from ..normalizers.currency import parse_currency
from ..normalizers.dates import is_canonical, normalize_date
from ..utils.exceptions import ConfigurationError, ExtractionError
from .pipeline import (
    DescriptionValidator,
    ExtractionPipeline,
    RawMovement,
    RecordDeduplicator,
    clean_description,
    ensure_records,
    ensure_text,
    join_pages,
    new_record_id,
    normalize_newlines,
)
from .statement_formats import StatementLayout, get_layout
from .tabular import Row, get_cell, is_blank_row, is_total_label, locate_header

logger = logging.getLogger(__name__)

AMOUNT_CELL = re.compile(r"^-?[\d.,]*\d$")
CELL_CURRENCY = re.compile(r"\s|€|EUR", re.IGNORECASE)

StatementSource = Union[str, Sequence[str], Sequence[Row]]


class StatementParser:
    """
    Parser for bank statements in any registered layout.

    Text sources run through the layout's strategy list; spreadsheet
    sources are read column by column after locating the header row.
    """

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config or ReconConfig()
        self.extraction = self.config.extraction

    def _validator(self, layout: StatementLayout) -> DescriptionValidator:
        return DescriptionValidator(
            deny_tokens=self.extraction.deny_tokens,
            deny_patterns=layout.deny_patterns,
            min_length=self.extraction.min_description_length,
            short_length=self.extraction.short_description_length,
        )

    def _dedup_key(self, record: BankRecord) -> tuple:
        # Recurring charges legitimately repeat amount and dates, so part of
        # the description is included in the key
        prefix = record.description[: self.extraction.dedup_description_length]
        return record.posting_date, record.value_date, record.amount, prefix

    def parse_text(
        self,
        text: Union[str, Sequence[str]],
        statement_format: StatementFormat,
        source_file: str = "",
    ) -> list[BankRecord]:
        """
        Extract bank records from statement text.

        Args:
            text: Full text or page-level text of the statement
            statement_format: Declared statement format
            source_file: Name of the originating file

        Returns:
            List of bank records (empty if no strategy matched)

        Raises:
            ConfigurationError: If the format has no text layout
        """
        layout = get_layout(statement_format)
        if not layout.supports_text:
            raise ConfigurationError(
                f"{statement_format.display_name} statements can only be read "
                f"from spreadsheets",
                file_name=source_file or None,
            )

        document = normalize_newlines(join_pages(text))
        for pattern, replacement in layout.preprocess:
            document = re.sub(pattern, replacement, document, flags=re.IGNORECASE)

        validator = self._validator(layout)

        def convert(raw: RawMovement) -> Optional[BankRecord]:
            return self._build_record(raw, validator, statement_format, source_file)

        pipeline: ExtractionPipeline[BankRecord] = ExtractionPipeline(
            layout.strategies,
            convert=convert,
            dedup_key=self._dedup_key,
            label=f"{statement_format.value}:{source_file or '<text>'}",
        )
        return pipeline.run(document)

    def _build_record(
        self,
        raw: RawMovement,
        validator: DescriptionValidator,
        statement_format: StatementFormat,
        source_file: str,
    ) -> Optional[BankRecord]:
        """
        Convert a raw movement into a BankRecord.

        Single-date layouts capture ``date`` which is used for both the
        posting and the value date.
        """
        posting = normalize_date(raw.get("posting") or raw.get("date"))
        if not is_canonical(posting):
            return None
        value = normalize_date(raw.get("value"))
        if not is_canonical(value):
            value = posting

        description = clean_description(raw.get("description"))
        if not validator.is_valid(description):
            logger.debug(f"Rejected description: {description!r}")
            return None

        raw_amount = (raw.get("amount") or "").strip()
        if not raw_amount:
            return None

        raw_balance = raw.get("balance")

        return BankRecord(
            id=new_record_id(),
            posting_date=posting,
            value_date=value,
            description=description,
            raw_amount=raw_amount,
            amount=parse_currency(raw_amount),
            balance=parse_currency(raw_balance) if raw_balance else None,
            source_file=source_file,
            source_format=statement_format,
        )

    def parse_rows(
        self,
        rows: Sequence[Row],
        statement_format: StatementFormat,
        source_file: str = "",
    ) -> list[BankRecord]:
        """
        Extract bank records from spreadsheet rows.

        Args:
            rows: Sheet rows, each an ordered sequence of cells
            statement_format: Declared statement format
            source_file: Name of the originating file

        Returns:
            List of bank records

        Raises:
            ConfigurationError: If the format has no spreadsheet layout
        """
        layout = get_layout(statement_format)
        if layout.tabular is None:
            raise ConfigurationError(
                f"{statement_format.display_name} does not support spreadsheet "
                f"files. Please use a PDF statement.",
                file_name=source_file or None,
            )

        header = locate_header(rows, layout.tabular)
        if header is not None:
            header_index, columns = header
            start = header_index + 1
        elif layout.tabular.positional:
            logger.warning(
                f"No header row found in {source_file or 'sheet'}, "
                f"reading columns by position"
            )
            start, columns = 0, dict(layout.tabular.positional)
        else:
            logger.warning(f"No header row found in {source_file or 'sheet'}")
            return []

        validator = self._validator(layout)
        deduplicator: RecordDeduplicator[BankRecord] = RecordDeduplicator(self._dedup_key)
        records: list[BankRecord] = []

        for index in range(start, len(rows)):
            record = self._build_row_record(
                rows[index], index, columns, validator, statement_format, source_file
            )
            if record is None:
                continue
            if not deduplicator.add(record):
                logger.debug(f"Row {index}: duplicate, skipping")
                continue
            records.append(record)

        logger.info(f"Extracted {len(records)} records from {source_file or 'sheet'}")
        return records

    def _build_row_record(
        self,
        row: Row,
        index: int,
        columns: dict[str, int],
        validator: DescriptionValidator,
        statement_format: StatementFormat,
        source_file: str,
    ) -> Optional[BankRecord]:
        if is_blank_row(row):
            return None

        posting_cell = get_cell(row, columns, "posting")
        movement = get_cell(row, columns, "description")
        if is_total_label(posting_cell) or is_total_label(movement):
            logger.debug(f"Row {index}: totals row, skipping")
            return None

        posting = normalize_date(posting_cell)
        if not is_canonical(posting):
            logger.debug(f"Row {index}: invalid date {posting_cell!r}, skipping")
            return None
        value = normalize_date(get_cell(row, columns, "value"))
        if not is_canonical(value):
            value = posting

        extra = get_cell(row, columns, "extra")
        description = clean_description(f"{movement} - {extra}" if extra else movement)
        if not validator.is_valid(description):
            logger.debug(f"Row {index}: invalid description {description!r}, skipping")
            return None

        raw_amount = CELL_CURRENCY.sub("", get_cell(row, columns, "amount"))
        if not raw_amount or not AMOUNT_CELL.match(raw_amount):
            logger.debug(f"Row {index}: invalid amount {raw_amount!r}, skipping")
            return None

        raw_balance = CELL_CURRENCY.sub("", get_cell(row, columns, "balance"))

        return BankRecord(
            id=new_record_id(),
            posting_date=posting,
            value_date=value,
            description=description,
            raw_amount=raw_amount,
            amount=parse_currency(raw_amount),
            balance=parse_currency(raw_balance) if AMOUNT_CELL.match(raw_balance) else None,
            source_file=source_file,
            source_format=statement_format,
        )


def _is_row_source(source: Sequence[Any]) -> bool:
    return any(not isinstance(item, str) for item in source)


def parse_statement(
    source: StatementSource,
    statement_format: Union[StatementFormat, str],
    source_file_name: str = "",
    config: Optional[ReconConfig] = None,
) -> list[BankRecord]:
    """
    Parse a bank statement into records.

    Args:
        source: Statement text, page-level texts, or spreadsheet rows
        statement_format: Declared statement format (enum or its value)
        source_file_name: Name of the originating file
        config: Optional configuration

    Returns:
        Non-empty list of bank records

    Raises:
        ExtractionError: If the source is empty
        FormatMismatchError: If no records could be extracted
    """
    statement_format = StatementFormat(statement_format)
    parser = StatementParser(config)

    if isinstance(source, str) or not _is_row_source(source):
        text = ensure_text(join_pages(source), source_file_name)
        records = parser.parse_text(text, statement_format, source_file_name)
    else:
        if is_blank_rows(source):
            raise ExtractionError(
                "The spreadsheet contains no data", file_name=source_file_name or None
            )
        records = parser.parse_rows(source, statement_format, source_file_name)

    return ensure_records(records, source_file_name, statement_format.display_name)


def is_blank_rows(rows: Sequence[Row]) -> bool:
    return all(is_blank_row(row) for row in rows)
