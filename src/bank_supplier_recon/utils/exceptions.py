"""Custom exceptions for the reconciliation application."""

from typing import Optional


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    def __init__(self, message: str = "", file_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.file_name = file_name

    def __str__(self) -> str:
        if self.file_name:
            return f"{self.file_name}: {self.message}"
        return self.message


class ExtractionError(ReconciliationError):
    """Source text or rows could not be obtained from a file."""

    pass


class FormatMismatchError(ReconciliationError):
    """Every extraction strategy for the declared format found nothing."""

    pass


class ReconciliationInputError(ReconciliationError):
    """Bank or supplier input is empty."""

    pass


class RecordNotFoundError(ReconciliationError):
    """A manual override referenced an unknown record."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass
