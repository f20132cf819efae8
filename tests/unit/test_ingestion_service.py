"""Unit tests for IngestionService and the extractor registry."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docdesk.providers.storage.memory_storage import MemoryStorageProvider
from docdesk.services.ingestion.chunker import WordChunker
from docdesk.services.ingestion.extractors import ExtractorRegistry, normalize_file_type
from docdesk.services.ingestion.ingestion_service import IngestionService
from docdesk.utils.errors import ExtractionError, StorageError
from helpers import FailingEmbeddingProvider, MockEmbeddingProvider, words


# ======================================================================
# ExtractorRegistry
# ======================================================================


class TestExtractorRegistry:
    def test_default_supported_types(self) -> None:
        assert ExtractorRegistry().supported_types() == ["docx", "md", "pdf", "txt"]

    @pytest.mark.parametrize(("raw", "expected"), [(".MD", "md"), ("txt", "txt"), (" .Pdf ", "pdf")])
    def test_normalize_file_type(self, raw: str, expected: str) -> None:
        assert normalize_file_type(raw) == expected

    def test_supports_accepts_dotted_types(self) -> None:
        registry = ExtractorRegistry()
        assert registry.supports(".md")
        assert not registry.supports("exe")

    @pytest.mark.asyncio
    async def test_extracts_plain_text(self, write_file) -> None:
        path = write_file("notes.md", "# Title\n\nBody text")
        assert await ExtractorRegistry().extract(str(path), "md") == "# Title\n\nBody text"

    @pytest.mark.asyncio
    async def test_unsupported_type_raises(self, write_file) -> None:
        path = write_file("run.exe", "MZ")
        with pytest.raises(ExtractionError, match="Unsupported file type 'exe'"):
            await ExtractorRegistry().extract(str(path), "exe")

    @pytest.mark.asyncio
    async def test_library_failure_is_wrapped(self, tmp_path: Path) -> None:
        broken = MagicMock()
        broken.file_types = ("txt",)
        broken.extract.side_effect = RuntimeError("boom")

        with pytest.raises(ExtractionError, match="boom") as exc_info:
            await ExtractorRegistry([broken]).extract(str(tmp_path / "x.txt"), "txt")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_corrupt_pdf_raises_extraction_error(self, write_file) -> None:
        path = write_file("fake.pdf", "this is not a pdf")
        with pytest.raises(ExtractionError):
            await ExtractorRegistry().extract(str(path), "pdf")


# ======================================================================
# IngestionService
# ======================================================================


class TestIngestionService:
    @pytest.mark.asyncio
    async def test_happy_path(self, write_file) -> None:
        storage = MemoryStorageProvider()
        embedder = MockEmbeddingProvider()
        service = IngestionService(storage, embedder)
        path = write_file("upload-1.txt", words(1200))

        result = await service.ingest(path, "handbook.txt", "txt")

        assert result is not None
        assert result.chunks_created == 3
        assert result.chunks_embedded == 3
        assert result.chunks_failed == 0
        assert result.original_name == "handbook.txt"

        document = await storage.get_document(result.document_id)
        assert document is not None
        assert document.is_indexed is True
        assert document.filename == "upload-1.txt"
        assert document.file_type == "txt"
        assert document.content == words(1200)

        chunks = await storage.list_chunks(document.id)
        assert [c.chunk_index for c in chunks] == [0, 1, 2]
        assert [len(c.content.split()) for c in chunks] == [500, 500, 200]
        assert embedder.calls == [c.content for c in chunks]

    @pytest.mark.asyncio
    async def test_artifact_deleted_after_success(self, write_file) -> None:
        path = write_file("a.txt", "hello world")
        await IngestionService(MemoryStorageProvider(), MockEmbeddingProvider()).ingest(path, "a.txt", "txt")
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_partial_embedding_failure(self, write_file) -> None:
        storage = MemoryStorageProvider()
        service = IngestionService(
            storage,
            FailingEmbeddingProvider(fail_on={2}),
            chunker=WordChunker(max_words=10),
        )
        path = write_file("five.txt", words(50))

        result = await service.ingest(path, "five.txt", "txt")

        assert result is not None
        assert result.chunks_created == 5
        assert result.chunks_embedded == 4
        assert result.chunks_failed == 1

        chunks = await storage.list_chunks(result.document_id)
        assert [c.chunk_index for c in chunks] == [0, 1, 2, 3, 4]
        assert [c.embedding is None for c in chunks] == [False, False, True, False, False]
        document = await storage.get_document(result.document_id)
        assert document is not None and document.is_indexed

    @pytest.mark.asyncio
    async def test_every_embedding_fails(self, write_file) -> None:
        storage = MemoryStorageProvider()
        service = IngestionService(storage, FailingEmbeddingProvider(), chunker=WordChunker(max_words=10))

        result = await service.ingest(write_file("x.txt", words(25)), "x.txt", "txt")

        assert result is not None
        assert result.chunks_created == 3
        assert result.chunks_embedded == 0
        stats = await storage.get_stats()
        assert stats.indexed_docs == 1
        assert stats.embedded_chunks == 0

    @pytest.mark.asyncio
    async def test_extraction_failure_creates_nothing(self, write_file) -> None:
        storage = MemoryStorageProvider()
        broken = MagicMock()
        broken.file_types = ("pdf",)
        broken.extract.side_effect = ValueError("cannot open broken document")
        service = IngestionService(storage, MockEmbeddingProvider(), extractors=ExtractorRegistry([broken]))
        path = write_file("bad.pdf", "not really a pdf")

        result = await service.ingest(path, "bad.pdf", "pdf")

        assert result is None
        assert await storage.list_documents() == []
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_unsupported_type_creates_nothing(self, write_file) -> None:
        storage = MemoryStorageProvider()
        path = write_file("tool.exe", "binary")

        assert await IngestionService(storage, MockEmbeddingProvider()).ingest(path, "tool.exe", "exe") is None
        assert await storage.list_documents() == []

    @pytest.mark.asyncio
    async def test_empty_text_is_indexed_with_no_chunks(self, write_file) -> None:
        storage = MemoryStorageProvider()
        path = write_file("empty.txt", "   \n  ")

        result = await IngestionService(storage, MockEmbeddingProvider()).ingest(path, "empty.txt", "txt")

        assert result is not None
        assert result.chunks_created == 0
        document = await storage.get_document(result.document_id)
        assert document is not None and document.is_indexed

    @pytest.mark.asyncio
    async def test_chunk_storage_failure_skips_chunk(self, write_file) -> None:
        storage = MemoryStorageProvider()
        real_create_chunk = storage.create_chunk
        calls = {"n": 0}

        async def flaky_create_chunk(**kwargs):  # noqa: ANN202
            calls["n"] += 1
            if calls["n"] == 2:
                raise StorageError(message="disk full", provider_name="memory")
            return await real_create_chunk(**kwargs)

        storage.create_chunk = flaky_create_chunk  # type: ignore[method-assign]
        service = IngestionService(storage, MockEmbeddingProvider(), chunker=WordChunker(max_words=10))

        result = await service.ingest(write_file("x.txt", words(30)), "x.txt", "txt")

        assert result is not None
        assert result.chunks_created == 2
        chunks = await storage.list_chunks(result.document_id)
        assert [c.chunk_index for c in chunks] == [0, 2]
        document = await storage.get_document(result.document_id)
        assert document is not None and document.is_indexed

    @pytest.mark.asyncio
    async def test_storage_failure_on_create_document_propagates(self, write_file) -> None:
        storage = MagicMock(spec=MemoryStorageProvider)
        storage.create_document = AsyncMock(side_effect=StorageError(message="db locked"))
        path = write_file("x.txt", "hello")

        with pytest.raises(StorageError):
            await IngestionService(storage, MockEmbeddingProvider()).ingest(path, "x.txt", "txt")
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_file_type_with_dot_is_normalised(self, write_file) -> None:
        storage = MemoryStorageProvider()
        result = await IngestionService(storage, MockEmbeddingProvider()).ingest(
            write_file("n.md", "# Notes"), "Notes.MD", ".MD"
        )
        assert result is not None
        document = await storage.get_document(result.document_id)
        assert document is not None and document.file_type == "md"
