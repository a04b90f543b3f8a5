"""
Spreadsheet reading with pandas.

Every cell is returned as text; blanks become empty strings. Real date
cells come back in ISO form and numbers in plain notation, both of which
the normalizers understand.
"""

from pathlib import PurePath
import asyncio
import io
import logging

import pandas as pd

from ..utils.exceptions import ExtractionError
from .base import Sheets
from .text_reader import decode_text

logger = logging.getLogger(__name__)


class SpreadsheetReader:
    """Tabular reader for .xlsx/.xls workbooks and .csv files."""

    async def read_sheets(self, data: bytes, file_name: str) -> Sheets:
        return await asyncio.to_thread(self._read, data, file_name)

    def _read(self, data: bytes, file_name: str) -> Sheets:
        path = PurePath(file_name)
        suffix = path.suffix.lower()

        try:
            if suffix == ".csv":
                frames = {path.stem: self._read_csv(data)}
            else:
                engine = "openpyxl" if suffix == ".xlsx" else None
                frames = pd.read_excel(
                    io.BytesIO(data),
                    sheet_name=None,
                    header=None,
                    dtype=str,
                    engine=engine,
                )
        except Exception as e:
            raise ExtractionError(f"Could not read spreadsheet: {e}", file_name=file_name) from e

        sheets = {str(name): frame_to_rows(frame) for name, frame in frames.items()}
        logger.debug(f"Read {len(sheets)} sheets from {file_name}")
        return sheets

    @staticmethod
    def _read_csv(data: bytes) -> pd.DataFrame:
        # Separator is sniffed; Spanish exports usually use ";"
        return pd.read_csv(
            io.StringIO(decode_text(data)),
            header=None,
            dtype=str,
            sep=None,
            engine="python",
            keep_default_na=False,
        )


def frame_to_rows(frame: pd.DataFrame) -> list[list[str]]:
    """Convert a DataFrame read without headers into rows of trimmed strings."""
    return [
        ["" if pd.isna(value) else str(value).strip() for value in row]
        for row in frame.itertuples(index=False, name=None)
    ]
