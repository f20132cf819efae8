"""Fire-and-forget handoff from the upload endpoint to ingestion workers.

The upload route acknowledges the client as soon as the file is on disk
and calls :meth:`IngestionQueue.submit`, which never blocks.  A fixed pool
of worker tasks, started in the application lifespan, drains the queue and
runs :meth:`IngestionService.ingest` for each job.  A failing job is logged
and the worker moves on to the next one.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import structlog

from docdesk.services.ingestion.ingestion_service import IngestionService

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class IngestionJob:
    """One uploaded file waiting to be ingested."""

    file_path: Path
    original_name: str
    file_type: str


class IngestionQueue:
    """``asyncio.Queue`` drained by ``workers`` background tasks."""

    def __init__(self, service: IngestionService, workers: int = 2) -> None:
        if workers < 1:
            msg = f"workers must be >= 1, got {workers}"
            raise ValueError(msg)
        self._service = service
        self._worker_count = workers
        self._queue: asyncio.Queue[IngestionJob] = asyncio.Queue()
        self._workers: list[asyncio.Task[None]] = []
        self._processed = 0
        self._failed = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def failed(self) -> int:
        return self._failed

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Spawn the worker tasks on the running event loop.  Idempotent."""
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(n), name=f"ingestion-worker-{n}")
            for n in range(self._worker_count)
        ]
        logger.info("ingestion_workers_started", workers=self._worker_count)

    def submit(self, job: IngestionJob) -> None:
        """Enqueue *job* without waiting for it to run."""
        self._queue.put_nowait(job)
        logger.info(
            "ingestion_job_queued",
            original_name=job.original_name,
            pending=self._queue.qsize(),
        )

    async def join(self) -> None:
        """Wait until every submitted job has been processed."""
        await self._queue.join()

    async def stop(self, drain: bool = True) -> None:
        """Stop the workers, optionally letting queued jobs finish first."""
        if drain and self._workers:
            await self._queue.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info(
            "ingestion_workers_stopped",
            processed=self._processed,
            failed=self._failed,
            abandoned=self._queue.qsize(),
        )

    async def _worker(self, worker_id: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._service.ingest(job.file_path, job.original_name, job.file_type)
                self._processed += 1
            except Exception:  # noqa: BLE001
                self._failed += 1
                logger.exception(
                    "ingestion_job_failed",
                    worker=worker_id,
                    original_name=job.original_name,
                )
            finally:
                self._queue.task_done()
