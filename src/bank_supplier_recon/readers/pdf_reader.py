"""
PDF text extraction with pdfplumber.

The library is loaded lazily, on first use or through ``load()``, and the
extractor exposes its lifecycle state so callers can report loading
failures before any file is processed.
"""

from types import ModuleType
from typing import Optional
import asyncio
import importlib
import io
import logging

from ..utils.exceptions import ExtractionError
from .base import ExtractorState

logger = logging.getLogger(__name__)

PDF_LIBRARY = "pdfplumber"


class PdfTextExtractor:
    """
    Page-level text extractor for PDF documents.

    Attributes:
        state: Current lifecycle state of the PDF library
        error: Error message when loading failed
    """

    def __init__(self, library: str = PDF_LIBRARY):
        self.library = library
        self.state = ExtractorState.UNINITIALIZED
        self.error: Optional[str] = None
        self._module: Optional[ModuleType] = None
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self.state is ExtractorState.READY

    async def load(self) -> None:
        """
        Load the PDF library once.

        Raises:
            ExtractionError: If the library cannot be imported
        """
        async with self._lock:
            if self.state is ExtractorState.READY:
                return
            if self.state is ExtractorState.FAILED:
                raise ExtractionError(f"PDF library unavailable: {self.error}")

            self.state = ExtractorState.LOADING
            try:
                self._module = await asyncio.to_thread(importlib.import_module, self.library)
            except ImportError as e:
                self.state = ExtractorState.FAILED
                self.error = str(e)
                logger.error(f"Failed to load PDF library {self.library}: {e}")
                raise ExtractionError(f"PDF library unavailable: {e}") from e

            self.state = ExtractorState.READY
            logger.debug(f"PDF library {self.library} loaded")

    async def extract_text(self, data: bytes) -> list[str]:
        """
        Extract the text of every page of a PDF.

        Args:
            data: PDF file content

        Returns:
            One string per page (empty for pages without a text layer)

        Raises:
            ExtractionError: If the library is unavailable or the PDF is unreadable
        """
        await self.load()
        return await asyncio.to_thread(self._extract_pages, data)

    def _extract_pages(self, data: bytes) -> list[str]:
        try:
            with self._module.open(io.BytesIO(data)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            raise ExtractionError(f"Could not read PDF: {e}") from e

        logger.debug(f"Extracted text from {len(pages)} PDF pages")
        return pages
