"""Document ingestion pipeline.

Public API:
    - :class:`IngestionService` -- extract, chunk, embed, store one upload
    - :class:`IngestionQueue`   -- background worker pool fed by the upload route
    - :class:`WordChunker`      -- fixed-size word-window splitter
    - :class:`ExtractorRegistry` -- per-format text extraction
"""

from docdesk.services.ingestion.chunker import WordChunker
from docdesk.services.ingestion.extractors import ExtractorRegistry
from docdesk.services.ingestion.ingestion_queue import IngestionJob, IngestionQueue
from docdesk.services.ingestion.ingestion_service import IngestionService

__all__ = [
    "ExtractorRegistry",
    "IngestionJob",
    "IngestionQueue",
    "IngestionService",
    "WordChunker",
]
