"""
Batch orchestration of reading, parsing and reconciliation.

Files are read and parsed concurrently. The first file error cancels the
remaining files and carries the name of the offending file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Optional, Sequence, TypeVar, Union
import asyncio
import logging

from .config import ReconConfig
from .matching.engine import ReconciliationEngine
from .models.records import (
    BankRecord,
    LedgerFormat,
    ReconciliationResult,
    SheetSummary,
    StatementFormat,
    SupplierRecord,
)
from .parsers.ledger_parser import describe_sheets, parse_ledger
from .parsers.statement_parser import parse_statement
from .readers.base import SourceKind, TabularReader, TextExtractor
from .readers.pdf_reader import PdfTextExtractor
from .readers.spreadsheet_reader import SpreadsheetReader
from .readers.text_reader import PlainTextExtractor
from .utils.exceptions import ExtractionError, ReconciliationError, ReconciliationInputError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_or_cancel(*aws: Awaitable[T]) -> list[T]:
    """
    Run awaitables concurrently, aborting all of them on the first failure.

    Siblings of a failed awaitable are cancelled and awaited before the
    error propagates.

    Returns:
        Results in argument order

    Raises:
        Exception: The error of the earliest failed awaitable, in argument order
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []

    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    errors = [task.exception() for task in tasks if not task.cancelled()]
    for error in errors:
        if error is not None:
            raise error
    return [task.result() for task in tasks]


@dataclass
class SourceFile:
    """
    One uploaded or on-disk source file.

    Attributes:
        name: File name, used for type detection and error messages
        content: Raw file bytes
        statement_format: Statement format for this file (overrides the batch default)
        selected_sheets: Workbook sheets to read (all sheets when None)
    """

    name: str
    content: bytes
    statement_format: Optional[StatementFormat] = None
    selected_sheets: Optional[list[str]] = field(default=None)

    @property
    def kind(self) -> SourceKind:
        return SourceKind.from_file_name(self.name)

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        statement_format: Optional[StatementFormat] = None,
        selected_sheets: Optional[list[str]] = None,
    ) -> "SourceFile":
        """Read a source file from disk."""
        path = Path(path)
        return cls(
            name=path.name,
            content=path.read_bytes(),
            statement_format=statement_format,
            selected_sheets=selected_sheets,
        )


class ReconciliationService:
    """
    Reads source files through the boundary readers and feeds the parsers
    and the matching engine.
    """

    def __init__(
        self,
        config: Optional[ReconConfig] = None,
        pdf_extractor: Optional[TextExtractor] = None,
        text_extractor: Optional[TextExtractor] = None,
        tabular_reader: Optional[TabularReader] = None,
    ):
        """
        Initialize the service.

        Args:
            config: Application configuration
            pdf_extractor: Text extractor for .pdf files
            text_extractor: Text extractor for .txt files
            tabular_reader: Reader for spreadsheet files
        """
        self.config = config or ReconConfig()
        self.pdf_extractor = pdf_extractor or PdfTextExtractor()
        self.text_extractor = text_extractor or PlainTextExtractor()
        self.tabular_reader = tabular_reader or SpreadsheetReader()

    async def _read_text(self, source: SourceFile) -> list[str]:
        extractor = self.pdf_extractor if source.kind is SourceKind.PDF else self.text_extractor
        return await extractor.extract_text(source.content)

    async def _read_sheets(self, source: SourceFile) -> dict[str, list[list[str]]]:
        sheets = await self.tabular_reader.read_sheets(source.content, source.name)
        if not sheets:
            raise ExtractionError("The spreadsheet has no sheets", file_name=source.name)
        return sheets

    async def parse_bank_file(
        self, source: SourceFile, statement_format: StatementFormat
    ) -> list[BankRecord]:
        """
        Read and parse one bank statement.

        Spreadsheet statements are read from their first sheet.
        """
        fmt = source.statement_format or statement_format
        try:
            if source.kind is SourceKind.TABULAR:
                sheets = await self._read_sheets(source)
                first_sheet = next(iter(sheets.values()))
                records = parse_statement(first_sheet, fmt, source.name, self.config)
            else:
                pages = await self._read_text(source)
                records = parse_statement(pages, fmt, source.name, self.config)
        except ReconciliationError as e:
            if e.file_name is None:
                e.file_name = source.name
            raise

        logger.info(f"Parsed {len(records)} bank records from {source.name}")
        return records

    async def parse_ledger_file(self, source: SourceFile) -> list[SupplierRecord]:
        """Read and parse one supplier ledger (text listing or period workbook)."""
        try:
            if source.kind is SourceKind.TABULAR:
                sheets = await self._read_sheets(source)
                records = parse_ledger(
                    sheets,
                    LedgerFormat.PERIOD_WORKBOOK,
                    source.name,
                    source.selected_sheets,
                    self.config,
                )
            else:
                pages = await self._read_text(source)
                records = parse_ledger(
                    pages, LedgerFormat.SUPPLIER_LISTING, source.name, config=self.config
                )
        except ReconciliationError as e:
            if e.file_name is None:
                e.file_name = source.name
            raise

        logger.info(f"Parsed {len(records)} supplier records from {source.name}")
        return records

    async def parse_bank_files(
        self, sources: Sequence[SourceFile], statement_format: StatementFormat
    ) -> list[BankRecord]:
        """
        Parse several bank statements concurrently.

        Args:
            sources: Statement files
            statement_format: Default statement format for the batch

        Returns:
            Records of all files, in file order

        Raises:
            ReconciliationInputError: If no files were given
            ReconciliationError: The first file error, with its file name
        """
        if not sources:
            raise ReconciliationInputError("No bank statement files provided")

        results = await gather_or_cancel(
            *(self.parse_bank_file(source, statement_format) for source in sources)
        )
        return [record for records in results for record in records]

    async def parse_ledger_files(self, sources: Sequence[SourceFile]) -> list[SupplierRecord]:
        """
        Parse several supplier ledgers concurrently.

        Raises:
            ReconciliationInputError: If no files were given
            ReconciliationError: The first file error, with its file name
        """
        if not sources:
            raise ReconciliationInputError("No supplier ledger files provided")

        results = await gather_or_cancel(*(self.parse_ledger_file(source) for source in sources))
        return [record for records in results for record in records]

    async def describe_workbook(self, source: SourceFile) -> list[SheetSummary]:
        """List the sheets of a period workbook with their periods and record counts."""
        if source.kind is not SourceKind.TABULAR:
            raise ExtractionError("Only spreadsheets have sheets", file_name=source.name)
        sheets = await self._read_sheets(source)
        return describe_sheets(sheets, self.config)

    async def reconcile_files(
        self,
        bank_sources: Sequence[SourceFile],
        ledger_sources: Sequence[SourceFile],
        statement_format: StatementFormat,
    ) -> ReconciliationResult:
        """
        Parse both sides and reconcile them.

        Raises:
            ReconciliationInputError: If either side has no files or no records
            ReconciliationError: The first file error, with its file name
        """
        bank_records, supplier_records = await gather_or_cancel(
            self.parse_bank_files(bank_sources, statement_format),
            self.parse_ledger_files(ledger_sources),
        )

        if not bank_records:
            raise ReconciliationInputError("No bank records to reconcile")
        if not supplier_records:
            raise ReconciliationInputError("No supplier records to reconcile")

        engine = ReconciliationEngine(self.config.matching)
        return engine.reconcile(bank_records, supplier_records)
