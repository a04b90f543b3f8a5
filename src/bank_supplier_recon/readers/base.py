"""
Boundary capabilities consumed by the reconciliation service.

The extraction core only sees page-level text or sheet rows; reading PDFs,
text files and spreadsheets happens behind these interfaces.
"""

from enum import Enum
from pathlib import PurePath
from typing import Protocol

from ..utils.exceptions import ConfigurationError

Sheets = dict[str, list[list[str]]]


class ExtractorState(Enum):
    """Lifecycle of a lazily loaded extraction library."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class SourceKind(Enum):
    """How a source file is read, decided by its suffix."""

    PDF = "pdf"
    TEXT = "text"
    TABULAR = "tabular"

    @classmethod
    def from_file_name(cls, file_name: str) -> "SourceKind":
        """
        Detect the source kind from a file name.

        Raises:
            ConfigurationError: If the suffix is not supported
        """
        suffix = PurePath(file_name).suffix.lower()
        if suffix == ".pdf":
            return cls.PDF
        if suffix == ".txt":
            return cls.TEXT
        if suffix in TABULAR_SUFFIXES:
            return cls.TABULAR
        raise ConfigurationError(
            f"Unsupported file type '{suffix or file_name}'. "
            f"Expected .pdf, .txt, .xls, .xlsx or .csv",
            file_name=file_name,
        )


TABULAR_SUFFIXES = (".xls", ".xlsx", ".csv")


class TextExtractor(Protocol):
    """Produces page-level text from a document."""

    async def extract_text(self, data: bytes) -> list[str]:
        """
        Extract the text of every page.

        Raises:
            ExtractionError: If the document cannot be read
        """
        ...


class TabularReader(Protocol):
    """Produces rows of string cells for every sheet of a spreadsheet."""

    async def read_sheets(self, data: bytes, file_name: str) -> Sheets:
        """
        Read all sheets of a spreadsheet, in workbook order.

        Raises:
            ExtractionError: If the spreadsheet cannot be read
        """
        ...
