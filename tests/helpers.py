"""Test doubles and builders shared across the docdesk test suite."""

from __future__ import annotations

import hashlib

from docdesk.config.settings import Settings
from docdesk.interfaces.embedding_provider import IEmbeddingProvider
from docdesk.utils.errors import ProviderError

EMBEDDING_DIM = 64


def make_settings(**overrides) -> Settings:
    """Build a Settings instance with every backend unset unless overridden.

    Passed explicitly so a developer's ``.env`` cannot leak into tests.
    """
    defaults = {
        "openrouter_api_key": "",
        "deepseek_api_key": "",
        "openai_api_key": "",
        "openai_base_url": "",
        "openai_text_model": "",
        "openai_embedding_model": "",
        "anthropic_api_key": "",
        "anthropic_model": "",
        "ollama_base_url": "",
        "llm_provider": "",
        "embedding_provider": "",
        "storage_backend": "memory",
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def words(count: int, prefix: str = "w") -> str:
    """``words(3)`` -> ``"w0 w1 w2"``."""
    return " ".join(f"{prefix}{i}" for i in range(count))


def hash_to_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic fixed-length vector by hashing *text*.

    Uses SHA-256 to hash the text, maps each byte into [-1, 1] and
    normalises to unit length.  Same text always produces the same vector.
    """
    raw = hashlib.sha256(text.encode("utf-8")).digest()
    while len(raw) < dim:
        raw += hashlib.sha256(raw).digest()
    values = [((b / 255.0) * 2.0) - 1.0 for b in raw[:dim]]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.extend(texts)
        return [hash_to_vector(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        return hash_to_vector(text)

    def get_dimension(self) -> int:
        return EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class FailingEmbeddingProvider(MockEmbeddingProvider):
    """Fails on the calls whose 0-based ordinal is in *fail_on* (all calls if ``None``)."""

    def __init__(self, fail_on: set[int] | None = None) -> None:
        super().__init__()
        self._fail_on = fail_on
        self._ordinal = 0

    async def embed_single(self, text: str) -> list[float]:
        ordinal = self._ordinal
        self._ordinal += 1
        if self._fail_on is None or ordinal in self._fail_on:
            raise ProviderError(message="embedding backend down", provider_name="mock-embedding")
        return await super().embed_single(text)

    def get_provider_name(self) -> str:
        return "failing-embedding"
