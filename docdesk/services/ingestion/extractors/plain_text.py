"""Extractor for plain-text and Markdown uploads.

Markdown is indexed as-is; headings and emphasis markers are ordinary
words to the chunker and keyword scorer.
"""

from __future__ import annotations

from pathlib import Path

import structlog

logger = structlog.get_logger(logger_name=__name__)


class PlainTextExtractor:
    """Reads ``.txt`` and ``.md`` files as UTF-8.

    Undecodable bytes are replaced rather than rejected so a stray Latin-1
    character does not cost the whole document.
    """

    file_types = ("txt", "md")

    def extract(self, file_path: str) -> str:
        text = Path(file_path).read_text(encoding="utf-8", errors="replace")
        logger.debug("plain_text_extracted", file_path=file_path, chars=len(text))
        return text
