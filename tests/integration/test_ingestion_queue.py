"""Integration tests for the background ingestion queue."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docdesk.providers.storage.memory_storage import MemoryStorageProvider
from docdesk.services.ingestion.ingestion_queue import IngestionJob, IngestionQueue
from docdesk.services.ingestion.ingestion_service import IngestionService
from docdesk.utils.errors import StorageError
from helpers import MockEmbeddingProvider, words


class TestIngestionQueue:
    def test_rejects_zero_workers(self) -> None:
        with pytest.raises(ValueError, match="workers"):
            IngestionQueue(MagicMock(spec=IngestionService), workers=0)

    @pytest.mark.asyncio
    async def test_jobs_are_processed_in_background(self, write_file) -> None:
        storage = MemoryStorageProvider()
        queue = IngestionQueue(IngestionService(storage, MockEmbeddingProvider()), workers=2)
        queue.start()
        try:
            for i in range(3):
                path = write_file(f"up{i}.txt", words(20, prefix=f"d{i}-"))
                queue.submit(IngestionJob(file_path=path, original_name=f"doc{i}.txt", file_type="txt"))
            await queue.join()
        finally:
            await queue.stop()

        assert queue.processed == 3
        assert queue.failed == 0
        assert queue.pending == 0
        assert queue.running is False
        stats = await storage.get_stats()
        assert (stats.total_docs, stats.indexed_docs, stats.total_chunks) == (3, 3, 3)

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stop_worker(self, tmp_path: Path) -> None:
        service = MagicMock(spec=IngestionService)
        service.ingest = AsyncMock(side_effect=[StorageError(message="db locked"), None])
        queue = IngestionQueue(service, workers=1)
        queue.start()

        queue.submit(IngestionJob(file_path=tmp_path / "a.txt", original_name="a.txt", file_type="txt"))
        queue.submit(IngestionJob(file_path=tmp_path / "b.txt", original_name="b.txt", file_type="txt"))
        await queue.stop(drain=True)

        assert queue.failed == 1
        assert queue.processed == 1
        assert service.ingest.await_count == 2

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self) -> None:
        queue = IngestionQueue(MagicMock(spec=IngestionService), workers=2)
        queue.start()
        first_workers = list(queue._workers)
        queue.start()

        assert queue._workers == first_workers
        await queue.stop()

    @pytest.mark.asyncio
    async def test_stop_without_drain_abandons_queued_jobs(self, tmp_path: Path) -> None:
        service = MagicMock(spec=IngestionService)
        service.ingest = AsyncMock(return_value=None)
        queue = IngestionQueue(service, workers=1)

        queue.submit(IngestionJob(file_path=tmp_path / "a.txt", original_name="a.txt", file_type="txt"))
        await queue.stop(drain=False)

        assert queue.pending == 1
        service.ingest.assert_not_awaited()
