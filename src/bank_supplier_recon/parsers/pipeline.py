"""
Shared extraction pipeline for statement and ledger text.

Every source layout is described as an ordered list of extraction
strategies. The pipeline runs them in priority order, converts and
validates the raw movements each one finds, removes duplicates, and stops
at the first strategy that produces records.
"""

from abc import ABC, abstractmethod
from typing import Callable, Generic, Hashable, Iterable, Optional, Sequence, TypeVar, Union
import logging
import re
import uuid

from ..utils.exceptions import ExtractionError, FormatMismatchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Raw movement fields captured by strategies: posting, value, date,
# description, amount, balance (statements) or date, code, name, document,
# reference, amount, status (ledgers)
RawMovement = dict[str, Optional[str]]

# Shared regex building blocks
AMOUNT = r"-?\d{1,3}(?:\.\d{3})*,\d{1,2}"
LOOSE_AMOUNT = r"-?\d+(?:[.,]\d{3})*[.,]\d{2}"
DATE = r"\d{2}[/-]\d{2}[/-]\d{4}"
DATE_SLASH = r"\d{2}/\d{2}/\d{4}"
SHORT_DATE = r"\d{2}[/-]\d{2}[/-]\d{2,4}"
CURRENCY = r"(?:EUR|€)"


def new_record_id() -> str:
    """Generate a unique record identifier."""
    return uuid.uuid4().hex


def clean_description(text: Optional[str]) -> str:
    """Collapse a (possibly multi-line) description into single-spaced text."""
    if not text:
        return ""
    return " ".join(text.split())


def join_pages(pages: Union[str, Sequence[str]]) -> str:
    """Join page-level text into one document, one page per line block."""
    if isinstance(pages, str):
        return pages
    return "\n".join(page or "" for page in pages)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


class DescriptionValidator:
    """
    Rejects descriptions that are really table headers or page furniture.

    Column titles and labels such as "saldo" or "página" are picked up by
    loose patterns when a header line sits next to numbers, so short
    candidate descriptions equal to one of the deny tokens are discarded.
    Deny patterns reject regardless of length.
    """

    def __init__(
        self,
        deny_tokens: Iterable[str] = (),
        deny_patterns: Iterable[str] = (),
        min_length: int = 3,
        short_length: int = 30,
    ):
        self.deny_tokens = {token.strip().lower() for token in deny_tokens}
        self.deny_patterns = [re.compile(p, re.IGNORECASE) for p in deny_patterns]
        self.min_length = min_length
        self.short_length = short_length

    def is_valid(self, description: str) -> bool:
        if not description or len(description) < self.min_length:
            return False

        if any(pattern.search(description) for pattern in self.deny_patterns):
            return False

        if len(description) < self.short_length:
            if description.lower().strip(" .:") in self.deny_tokens:
                return False

        return True


class RecordDeduplicator(Generic[T]):
    """Drops records whose composite key has already been seen."""

    def __init__(self, key: Callable[[T], Hashable]):
        self.key = key
        self._seen: set[Hashable] = set()

    def add(self, record: T) -> bool:
        """
        Register a record.

        Returns:
            True if the record is new, False if it is a duplicate
        """
        record_key = self.key(record)
        if record_key in self._seen:
            return False
        self._seen.add(record_key)
        return True

    def filter(self, records: Iterable[T]) -> list[T]:
        return [record for record in records if self.add(record)]


class ExtractionStrategy(ABC):
    """A single way of finding movements in source text."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def extract(self, text: str) -> list[RawMovement]:
        """
        Find raw movements in text.

        Args:
            text: Preprocessed document text

        Returns:
            List of captured field dictionaries (may be empty)
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class RegexStrategy(ExtractionStrategy):
    """Scans the whole text with one pattern using named groups."""

    def __init__(self, name: str, pattern: str, flags: int = re.IGNORECASE):
        super().__init__(name)
        self.pattern = re.compile(pattern, flags)

    def extract(self, text: str) -> list[RawMovement]:
        return [match.groupdict() for match in self.pattern.finditer(text)]


class BlockStrategy(ExtractionStrategy):
    """
    Splits the text on a delimiter and matches each block separately.

    Used for layouts where a fixed label precedes every movement and the
    description spans several lines. The block before the first delimiter
    is the page header and is ignored.
    """

    def __init__(
        self, name: str, delimiter: str, pattern: str, flags: int = re.IGNORECASE
    ):
        super().__init__(name)
        self.delimiter = re.compile(delimiter, flags)
        self.pattern = re.compile(pattern, flags)

    def extract(self, text: str) -> list[RawMovement]:
        movements: list[RawMovement] = []
        for block in self.delimiter.split(text)[1:]:
            block = block.strip()
            if not block:
                continue
            match = self.pattern.match(block)
            if match:
                movements.append(match.groupdict())
        return movements


class MultilineStrategy(ExtractionStrategy):
    """
    Line-buffered extraction for descriptions wrapped over several lines.

    A line matching ``start`` opens a movement. Following lines are buffered
    as description until a line matching ``end`` (the terminating amount,
    and possibly value date and balance) closes it. A start line whose
    remainder already satisfies ``end`` is a complete single-line movement.
    """

    def __init__(
        self,
        name: str,
        start: str,
        end: str,
        stop_prefixes: Sequence[str] = (),
        flags: int = re.IGNORECASE,
    ):
        super().__init__(name)
        self.start = re.compile(start, flags)
        self.end = re.compile(end, flags)
        self.stop = (
            re.compile(r"^(?:" + "|".join(stop_prefixes) + ")", flags)
            if stop_prefixes
            else None
        )

    def extract(self, text: str) -> list[RawMovement]:
        movements: list[RawMovement] = []
        current: Optional[RawMovement] = None
        parts: list[str] = []

        for raw_line in text.split("\n"):
            line = raw_line.strip()
            if not line:
                continue

            start = self.start.match(line)
            if start:
                opened = start.groupdict()
                remainder = (opened.pop("description", None) or "").strip()
                end = self.end.match(remainder) if remainder else None
                if end:
                    movements.append(self._close(opened, [], end.groupdict()))
                    current, parts = None, []
                    continue

            if current is not None:
                end = self.end.match(line)
                if end:
                    movements.append(self._close(current, parts, end.groupdict()))
                    current, parts = None, []
                    continue

            if start:
                current, parts = opened, [remainder] if remainder else []
            elif current is not None and not (self.stop and self.stop.match(line)):
                parts.append(line)

        return movements

    @staticmethod
    def _close(
        opened: RawMovement, parts: list[str], closing: RawMovement
    ) -> RawMovement:
        tail = closing.pop("description", None)
        movement = dict(opened)
        for key, value in closing.items():
            if value is not None:
                movement[key] = value
        movement["description"] = " ".join(parts + ([tail] if tail else []))
        return movement


class ExtractionPipeline(Generic[T]):
    """
    Runs strategies in priority order until one yields valid records.

    Args:
        strategies: Strategies ordered from strictest to loosest
        convert: Turns a raw movement into a record, or None if invalid
        dedup_key: Composite key used to drop duplicate extractions
        label: Name used in log messages
    """

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy],
        convert: Callable[[RawMovement], Optional[T]],
        dedup_key: Callable[[T], Hashable],
        label: str,
    ):
        self.strategies = list(strategies)
        self.convert = convert
        self.dedup_key = dedup_key
        self.label = label

    def run(self, text: str) -> list[T]:
        for strategy in self.strategies:
            raw_movements = strategy.extract(text)
            converted = (self.convert(raw) for raw in raw_movements)
            deduplicator: RecordDeduplicator[T] = RecordDeduplicator(self.dedup_key)
            records = deduplicator.filter(r for r in converted if r is not None)

            logger.debug(
                f"[{self.label}] strategy '{strategy.name}': "
                f"{len(raw_movements)} candidates, {len(records)} valid records"
            )

            if records:
                logger.info(
                    f"[{self.label}] extracted {len(records)} records "
                    f"with strategy '{strategy.name}'"
                )
                return records

        logger.warning(f"[{self.label}] no strategy produced records")
        return []


def ensure_text(text: str, source_file: str) -> str:
    """
    Reject sources without extractable text.

    Raises:
        ExtractionError: If the text is empty
    """
    if not text or not text.strip():
        raise ExtractionError(
            "No extractable text found. The file may be a scanned image, "
            "protected, or corrupt.",
            file_name=source_file or None,
        )
    return text


def ensure_records(records: list[T], source_file: str, format_name: str) -> list[T]:
    """
    Escalate an empty extraction result.

    Raises:
        FormatMismatchError: If no records were extracted
    """
    if not records:
        raise FormatMismatchError(
            f"No records found using the {format_name} format. Check that the "
            f"file is not a scanned image and that the selected format matches "
            f"the document.",
            file_name=source_file or None,
        )
    return records
