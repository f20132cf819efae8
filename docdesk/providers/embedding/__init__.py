"""Embedding provider implementations.

Three implementations of IEmbeddingProvider, in selection priority order:
    1. OpenAIEmbeddingProvider      -- text-embedding-3-small (1536 dims) via
       OpenRouter or OpenAI.
    2. NomicEmbeddingProvider       -- nomic-embed-text via Ollama (768 dims).
    3. UnavailableEmbeddingProvider -- used when neither is configured; every
       call fails so retrieval falls back to keyword search.
"""

from docdesk.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docdesk.providers.embedding.unavailable_embedding_provider import UnavailableEmbeddingProvider

__all__ = ["NomicEmbeddingProvider", "OpenAIEmbeddingProvider", "UnavailableEmbeddingProvider"]
