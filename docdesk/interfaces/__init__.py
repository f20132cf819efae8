"""Abstract interfaces for every swappable backend.

Services depend only on these ABCs; concrete adapters live in
``docdesk/providers/`` and are chosen in ``docdesk/main.py``.
"""

from docdesk.interfaces.cache_provider import ICacheProvider
from docdesk.interfaces.embedding_provider import IEmbeddingProvider
from docdesk.interfaces.llm_provider import ILLMProvider
from docdesk.interfaces.storage_provider import IStorageProvider

__all__ = ["ICacheProvider", "IEmbeddingProvider", "ILLMProvider", "IStorageProvider"]
