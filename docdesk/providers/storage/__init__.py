"""Storage provider implementations."""

from docdesk.providers.storage.memory_storage import MemoryStorageProvider
from docdesk.providers.storage.sqlite_storage import SQLiteStorageProvider

__all__ = ["MemoryStorageProvider", "SQLiteStorageProvider"]
