"""Text extraction strategies, one per supported upload format.

:class:`ExtractorRegistry` maps a declared file type (extension without the
dot) to the extractor that reads it.  Extraction libraries are blocking, so
:meth:`ExtractorRegistry.extract` runs them in a worker thread.  Any
failure (unknown format, corrupt file, library error) surfaces as a single
:class:`~docdesk.utils.errors.ExtractionError`.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import structlog

from docdesk.services.ingestion.extractors.docx_extractor import DocxExtractor
from docdesk.services.ingestion.extractors.pdf_extractor import PDFExtractor
from docdesk.services.ingestion.extractors.plain_text import PlainTextExtractor
from docdesk.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class TextExtractor(Protocol):
    file_types: tuple[str, ...]

    def extract(self, file_path: str) -> str: ...


def normalize_file_type(file_type: str) -> str:
    """``".MD"`` -> ``"md"``."""
    return file_type.strip().lower().lstrip(".")


class ExtractorRegistry:
    """Looks up and runs the extractor for a file type."""

    def __init__(self, extractors: list[TextExtractor] | None = None) -> None:
        if extractors is None:
            extractors = [PlainTextExtractor(), DocxExtractor(), PDFExtractor()]
        self._by_type: dict[str, TextExtractor] = {}
        for extractor in extractors:
            for file_type in extractor.file_types:
                self._by_type[file_type] = extractor

    def supported_types(self) -> list[str]:
        return sorted(self._by_type)

    def supports(self, file_type: str) -> bool:
        return normalize_file_type(file_type) in self._by_type

    async def extract(self, file_path: str, file_type: str) -> str:
        """Return the full text of *file_path*.

        Raises
        ------
        ExtractionError
            If *file_type* has no extractor or the extractor fails.
        """
        normalized = normalize_file_type(file_type)
        extractor = self._by_type.get(normalized)
        if extractor is None:
            raise ExtractionError(
                message=(
                    f"Unsupported file type '{normalized}'. "
                    f"Supported: {', '.join(self.supported_types())}"
                ),
            )
        try:
            return await asyncio.to_thread(extractor.extract, file_path)
        except Exception as exc:
            raise ExtractionError(
                message=f"Could not extract text from {normalized} file: {exc}",
                provider_name=type(extractor).__name__,
            ) from exc


__all__ = [
    "DocxExtractor",
    "ExtractorRegistry",
    "PDFExtractor",
    "PlainTextExtractor",
    "TextExtractor",
    "normalize_file_type",
]
