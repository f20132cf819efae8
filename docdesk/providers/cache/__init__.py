"""Cache providers.

MemoryCacheProvider keeps query embeddings in a process-local TTL cache so
a repeated question does not trigger a second embedding call.
"""

from docdesk.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
