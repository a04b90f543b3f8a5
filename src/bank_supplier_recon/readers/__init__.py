"""Readers that turn source files into page text or sheet rows."""

from .base import ExtractorState, Sheets, SourceKind, TabularReader, TextExtractor
from .pdf_reader import PdfTextExtractor
from .spreadsheet_reader import SpreadsheetReader
from .text_reader import PlainTextExtractor

__all__ = [
    "ExtractorState",
    "PdfTextExtractor",
    "PlainTextExtractor",
    "Sheets",
    "SourceKind",
    "SpreadsheetReader",
    "TabularReader",
    "TextExtractor",
]
