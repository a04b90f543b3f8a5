"""Plain-text documents, one page per form-feed separated block."""

import logging

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"


def decode_text(data: bytes) -> str:
    """Decode text exported as UTF-8 (with or without BOM) or Latin-1."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("Input is not UTF-8, decoding as Latin-1")
        return data.decode("latin-1")


class PlainTextExtractor:
    """Text extractor for documents already converted to text."""

    async def extract_text(self, data: bytes) -> list[str]:
        return decode_text(data).split(PAGE_BREAK)
