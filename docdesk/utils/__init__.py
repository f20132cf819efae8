"""Utility modules for docdesk.

- **errors** -- Domain exception hierarchy rooted at DocDeskError.
- **logging** -- structlog setup with console output in development and
  JSON in production, plus request/job context binding.
- **concurrency** -- Per-record asyncio locks and a throttled gather.
"""

from docdesk.utils.concurrency import KeyedLocks, throttled_gather
from docdesk.utils.errors import (
    ChunkProcessingError,
    ConfigurationError,
    DocDeskError,
    ExtractionError,
    NotFoundError,
    ProviderError,
    StorageError,
    ValidationError,
)
from docdesk.utils.logging import configure_logging, get_logger, log_context

__all__ = [
    "ChunkProcessingError",
    "ConfigurationError",
    "DocDeskError",
    "ExtractionError",
    "KeyedLocks",
    "NotFoundError",
    "ProviderError",
    "StorageError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "log_context",
    "throttled_gather",
]
