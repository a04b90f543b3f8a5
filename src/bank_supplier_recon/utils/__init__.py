"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    ExtractionError,
    FormatMismatchError,
    ReconciliationInputError,
    RecordNotFoundError,
    ConfigurationError,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "ReconciliationError",
    "ExtractionError",
    "FormatMismatchError",
    "ReconciliationInputError",
    "RecordNotFoundError",
    "ConfigurationError",
    "setup_logging",
    "get_logger",
]
