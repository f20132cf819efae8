"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **extract -> create document -> chunk -> embed -> store -> mark indexed**.

:class:`IngestionService` coordinates its collaborators (extractor
registry, chunker, embedding provider, storage) without any of them knowing
about each other.  Failure handling differs by stage:

1. Extraction failure: no document is created, nothing is raised, the
   upload artifact is removed and ``None`` is returned.
2. Embedding failure for one chunk: the chunk is stored with
   ``embedding=None`` and the loop continues.
3. Storage failure for one chunk: the chunk is skipped and the loop
   continues.
4. After every chunk has been attempted the document is marked indexed,
   even if some chunks failed.

The upload artifact is deleted on every path.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from docdesk.models.rag import IngestionResult
from docdesk.services.ingestion.chunker import WordChunker
from docdesk.services.ingestion.extractors import ExtractorRegistry, normalize_file_type
from docdesk.utils.errors import ChunkProcessingError, ExtractionError
from docdesk.utils.logging import log_context

if TYPE_CHECKING:
    from docdesk.interfaces.embedding_provider import IEmbeddingProvider
    from docdesk.interfaces.storage_provider import IStorageProvider
    from docdesk.models.records import Document

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Turns an uploaded file into a stored, indexed document.

    Parameters
    ----------
    storage:
        Receives the document and chunk records.
    embedding_provider:
        Produces one vector per chunk.
    extractors:
        Format-specific text extraction; defaults to txt/md/docx/pdf.
    chunker:
        Word-window splitter; defaults to 500-word windows.
    """

    def __init__(
        self,
        storage: IStorageProvider,
        embedding_provider: IEmbeddingProvider,
        extractors: ExtractorRegistry | None = None,
        chunker: WordChunker | None = None,
    ) -> None:
        self._storage = storage
        self._embedding_provider = embedding_provider
        self._extractors = extractors or ExtractorRegistry()
        self._chunker = chunker or WordChunker()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        file_path: str | Path,
        original_name: str,
        file_type: str,
    ) -> IngestionResult | None:
        """Run the full pipeline for one uploaded file.

        Parameters
        ----------
        file_path:
            Temporary upload artifact.  Always deleted before returning.
        original_name:
            Filename as supplied by the uploader.
        file_type:
            Declared extension, with or without the leading dot.

        Returns
        -------
        IngestionResult or None
            ``None`` when text extraction failed and no document was created.
        """
        path = Path(file_path)
        normalized_type = normalize_file_type(file_type)
        start = time.monotonic()

        try:
            with log_context(original_name=original_name, file_type=normalized_type):
                try:
                    text = await self._extractors.extract(str(path), normalized_type)
                except ExtractionError as exc:
                    logger.error(
                        "ingestion_extraction_failed",
                        error=exc.message,
                        extractor=exc.provider_name,
                    )
                    return None

                document = await self._storage.create_document(
                    filename=path.name,
                    original_name=original_name,
                    file_type=normalized_type,
                    content=text,
                )
                with log_context(document_id=document.id):
                    try:
                        return await self._index_document(document, text, start)
                    except Exception:
                        logger.exception("ingestion_failed")
                        raise
        finally:
            self._remove_artifact(path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _index_document(self, document: Document, text: str, start: float) -> IngestionResult:
        # Ordinals come from the precomputed list, never from await order.
        chunks = self._chunker.chunk(text)
        stored = 0
        embedded = 0

        for chunk_index, content in enumerate(chunks):
            embedding = await self._embed_chunk(content, chunk_index)
            try:
                await self._storage.create_chunk(
                    document_id=document.id,
                    content=content,
                    chunk_index=chunk_index,
                    embedding=embedding,
                )
            except Exception as exc:  # noqa: BLE001
                error = ChunkProcessingError(
                    message=f"Could not store chunk: {exc}",
                    chunk_index=chunk_index,
                )
                logger.error("chunk_store_failed", chunk_index=error.chunk_index, error=error.message)
                continue
            stored += 1
            if embedding is not None:
                embedded += 1

        await self._storage.set_document_indexed(document.id)

        elapsed = round(time.monotonic() - start, 3)
        result = IngestionResult(
            document_id=document.id,
            original_name=document.original_name,
            chunks_created=stored,
            chunks_embedded=embedded,
            chunks_failed=len(chunks) - embedded,
            ingestion_time=elapsed,
        )
        logger.info(
            "ingestion_complete",
            chunks=len(chunks),
            chunks_embedded=embedded,
            chunks_failed=result.chunks_failed,
            elapsed_s=elapsed,
        )
        return result

    async def _embed_chunk(self, content: str, chunk_index: int) -> list[float] | None:
        """Return the chunk's vector, or ``None`` if the provider failed."""
        try:
            return await self._embedding_provider.embed_single(content)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "chunk_embedding_failed",
                chunk_index=chunk_index,
                provider=self._embedding_provider.get_provider_name(),
                error=str(exc),
            )
            return None

    @staticmethod
    def _remove_artifact(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("upload_artifact_cleanup_failed", path=str(path), error=str(exc))
