"""Embedding provider used when no backend can produce vectors.

Selected when the configured generation backend has no embeddings API
(DeepSeek, Anthropic) or nothing is configured at all.  Every call raises
:class:`ProviderError`, which sends ingestion down the null-embedding path
and chat retrieval down the keyword fallback.
"""

from __future__ import annotations

from docdesk.interfaces.embedding_provider import IEmbeddingProvider
from docdesk.utils.errors import ProviderError


class UnavailableEmbeddingProvider(IEmbeddingProvider):
    def __init__(self, reason: str = "No embedding backend is configured") -> None:
        self._reason = reason

    async def embed(self, texts: list[str]) -> list[list[float]]:
        raise ProviderError(message=self._reason, provider_name=self.get_provider_name())

    async def embed_single(self, text: str) -> list[float]:
        raise ProviderError(message=self._reason, provider_name=self.get_provider_name())

    def get_dimension(self) -> int:
        return 0

    def get_provider_name(self) -> str:
        return "unavailable"

    def is_available(self) -> bool:
        return False
