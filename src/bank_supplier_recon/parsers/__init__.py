"""Parsers for bank statements and supplier ledgers."""

from .ledger_parser import LedgerParser, describe_sheets, parse_ledger
from .pipeline import ExtractionPipeline, RecordDeduplicator
from .statement_formats import STATEMENT_LAYOUTS, StatementLayout, supported_statement_formats
from .statement_parser import StatementParser, parse_statement

__all__ = [
    "ExtractionPipeline",
    "LedgerParser",
    "RecordDeduplicator",
    "STATEMENT_LAYOUTS",
    "StatementLayout",
    "StatementParser",
    "describe_sheets",
    "parse_ledger",
    "parse_statement",
    "supported_statement_formats",
]
