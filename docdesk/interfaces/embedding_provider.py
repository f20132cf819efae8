"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.
Implementations wrap an OpenAI-compatible embeddings endpoint (OpenAI,
OpenRouter), ``nomic-embed-text`` served locally by Ollama, or stand in for
a backend that cannot embed at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider       -- text-embedding-3-small via OpenAI / OpenRouter
#   NomicEmbeddingProvider        -- nomic-embed-text via Ollama (local)
#   UnavailableEmbeddingProvider  -- always fails; selects keyword retrieval
# Located in: docdesk/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by ingestion and retrieval."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        docdesk.utils.errors.ProviderError
            If the embedding API call fails or no backend is configured.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Used for each chunk during ingestion and for the query at chat time.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Example values: ``1536`` (``text-embedding-3-small``), ``768``
        (``nomic-embed-text``), ``0`` when no backend is available.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"openrouter_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured to produce vectors."""
