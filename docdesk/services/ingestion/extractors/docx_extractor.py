"""Extractor for Word ``.docx`` files via python-docx.

python-docx reads the XML inside the DOCX zip archive; formatting is
dropped and non-empty paragraphs are joined with blank lines so the
keyword fallback can still split the text into paragraphs.
"""

from __future__ import annotations

import structlog
from docx import Document as load_docx

logger = structlog.get_logger(logger_name=__name__)


class DocxExtractor:
    file_types = ("docx",)

    def extract(self, file_path: str) -> str:
        doc = load_docx(file_path)
        paragraphs = [para.text for para in doc.paragraphs if para.text.strip()]
        logger.debug("docx_extracted", file_path=file_path, paragraphs=len(paragraphs))
        return "\n\n".join(paragraphs)
