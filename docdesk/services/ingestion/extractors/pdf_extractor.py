"""Extractor for PDF files via PyMuPDF (fitz).

Text is read page by page; pages without an extractable text layer
(scanned images) contribute nothing.  Pages are joined with blank lines.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

logger = structlog.get_logger(logger_name=__name__)


class PDFExtractor:
    file_types = ("pdf",)

    def extract(self, file_path: str) -> str:
        pages: list[str] = []
        with fitz.open(file_path) as doc:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        logger.debug("pdf_extracted", file_path=file_path, pages_with_text=len(pages))
        return "\n\n".join(pages)
