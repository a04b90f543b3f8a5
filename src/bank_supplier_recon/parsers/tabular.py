"""
Header-row location for spreadsheet sources.

Spreadsheet exports put a variable number of title rows above the table and
label columns differently per bank, locale and period. Columns are resolved
by matching header cells against synonym sets, case-insensitively and
ignoring accents.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence
import logging
import unicodedata

logger = logging.getLogger(__name__)

Row = Sequence[Any]

TOTAL_MARKERS = ("t o t a l s", "total")


def fold(text: str) -> str:
    """Lowercase and strip accents so that "Previsió" matches "previsio"."""
    decomposed = unicodedata.normalize("NFKD", text.strip().lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def cell_text(value: Any) -> str:
    """Render a spreadsheet cell as trimmed text."""
    if value is None:
        return ""
    text = str(value).strip()
    return "" if text.lower() in ("nan", "none", "nat") else text


@dataclass(frozen=True)
class ColumnSpec:
    """
    A semantic column and the header labels it may appear under.

    A synonym matches a header cell when they are equal, or (unless
    ``exact_only``) when every word of the synonym occurs in the cell.
    """

    key: str
    synonyms: tuple[str, ...]
    required: bool = False
    exact_only: bool = False

    def matches_exactly(self, header: str) -> bool:
        return any(header == fold(s) for s in self.synonyms)

    def matches_loosely(self, header: str) -> bool:
        if self.exact_only:
            return False
        return any(
            all(word in header for word in fold(s).split()) for s in self.synonyms
        )


@dataclass(frozen=True)
class TabularLayout:
    """
    Column layout of a spreadsheet source.

    Columns are resolved in declaration order and each header cell can be
    claimed once, so more specific columns ("fecha valor") must be declared
    before generic ones ("fecha").
    """

    columns: tuple[ColumnSpec, ...]
    min_optional_matches: int = 0
    min_cells: int = 3
    positional: Optional[dict[str, int]] = None
    key_columns: Optional[tuple[str, ...]] = None

    def resolve(self, row: Row) -> dict[str, int]:
        """Map semantic column keys to indexes for a candidate header row."""
        headers = [fold(cell_text(c)).rstrip(".:") for c in row]
        claimed: set[int] = set()
        resolved: dict[str, int] = {}

        for column in self.columns:
            index = _first_unclaimed(headers, claimed, column.matches_exactly)
            if index is None:
                index = _first_unclaimed(headers, claimed, column.matches_loosely)
            if index is not None:
                claimed.add(index)
                resolved[column.key] = index

        return resolved

    def is_header(self, resolved: dict[str, int]) -> bool:
        required = [c.key for c in self.columns if c.required]
        if not all(key in resolved for key in required):
            return False
        counted = self.key_columns or tuple(c.key for c in self.columns if not c.required)
        optional_found = sum(1 for key in counted if key in resolved)
        return optional_found >= self.min_optional_matches


def _first_unclaimed(headers: list[str], claimed: set[int], predicate) -> Optional[int]:
    for index, header in enumerate(headers):
        if index in claimed or not header:
            continue
        if predicate(header):
            return index
    return None


def locate_header(
    rows: Sequence[Row], layout: TabularLayout
) -> Optional[tuple[int, dict[str, int]]]:
    """
    Find the header row of a table.

    Args:
        rows: Sheet rows
        layout: Expected column layout

    Returns:
        Tuple of (header row index, column map) or None if not found
    """
    for index, row in enumerate(rows):
        if not row:
            continue
        if sum(1 for c in row if cell_text(c)) < layout.min_cells:
            continue
        resolved = layout.resolve(row)
        if layout.is_header(resolved):
            logger.debug(f"Header row found at index {index}: {resolved}")
            return index, resolved
    return None


def get_cell(row: Row, columns: dict[str, int], key: str) -> str:
    """Read a semantic column from a row, empty when absent."""
    index = columns.get(key)
    if index is None or index >= len(row):
        return ""
    return cell_text(row[index])


def is_blank_row(row: Row) -> bool:
    return not row or not any(cell_text(c) for c in row)


def is_total_label(text: str) -> bool:
    """Detect totals rows such as "TOTAL" or "T O T A L S"."""
    folded = fold(text)
    return any(folded.startswith(marker) for marker in TOTAL_MARKERS)
