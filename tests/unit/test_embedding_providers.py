"""Unit tests for embedding provider adapters -- OpenAI-compatible, Nomic, unavailable."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import openai
import pytest

from docdesk.config.provider_config import BackendConfig
from docdesk.utils.errors import ProviderError


def _backend(name: str = "openai", **overrides) -> BackendConfig:
    defaults = {"name": name, "api_key": "sk-test", "model": "text-embedding-3-small"}
    defaults.update(overrides)
    return BackendConfig(**defaults)


def _embedding_response(*vectors: list[float]) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    response.usage = MagicMock(total_tokens=50)
    return response


# ======================================================================
# OpenAI-compatible Embedding Provider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    def test_name_and_dimension(self) -> None:
        from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        with patch("docdesk.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"):
            provider = OpenAIEmbeddingProvider(_backend("openrouter"))
            large = OpenAIEmbeddingProvider(_backend(model="text-embedding-3-large"))

        assert provider.get_provider_name() == "openrouter_embedding"
        assert provider.get_dimension() == 1536
        assert large.get_dimension() == 3072

    def test_is_available_without_key(self) -> None:
        from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        with patch("docdesk.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"):
            assert OpenAIEmbeddingProvider(_backend(api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_embed_success(self) -> None:
        from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([0.1, 0.2], [0.3, 0.4]))

        with patch(
            "docdesk.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_backend())
            result = await provider.embed(["hello", "world"])

        assert result == [[0.1, 0.2], [0.3, 0.4]]
        kwargs = mock_client.embeddings.create.call_args.kwargs
        assert kwargs == {"input": ["hello", "world"], "model": "text-embedding-3-small"}

    @pytest.mark.asyncio
    async def test_embed_empty_skips_api(self) -> None:
        from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        with patch(
            "docdesk.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            assert await OpenAIEmbeddingProvider(_backend()).embed([]) == []
        mock_client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_large_inputs_are_batched(self) -> None:
        from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        async def _fake_create(input, model):  # noqa: A002, ANN001, ANN202
            return _embedding_response(*([0.5] for _ in input))

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=_fake_create)

        with patch(
            "docdesk.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            result = await OpenAIEmbeddingProvider(_backend()).embed(["t"] * 2050)

        assert len(result) == 2050
        batch_sizes = [len(c.kwargs["input"]) for c in mock_client.embeddings.create.call_args_list]
        assert batch_sizes == [2048, 2]

    @pytest.mark.asyncio
    async def test_vector_count_mismatch_raises(self) -> None:
        from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([0.1]))

        with patch(
            "docdesk.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(ProviderError, match="1 vectors for 2 inputs"):
                await OpenAIEmbeddingProvider(_backend()).embed(["a", "b"])

    @pytest.mark.asyncio
    async def test_api_error_raises_provider_error(self) -> None:
        from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.APIError(message="Quota exceeded", request=MagicMock(), body=None)
        )

        with patch(
            "docdesk.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(ProviderError) as exc_info:
                await OpenAIEmbeddingProvider(_backend()).embed_single("hello")

        assert exc_info.value.provider_name == "openai_embedding"


# ======================================================================
# Nomic Embedding Provider
# ======================================================================


class TestNomicEmbeddingProvider:
    @pytest.fixture()
    def backend(self) -> BackendConfig:
        return _backend("ollama", api_key="", base_url="http://localhost:11434", model="nomic-embed-text")

    @pytest.mark.asyncio
    async def test_embed_single(self, backend: BackendConfig) -> None:
        from docdesk.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([0.7] * 768))

        with patch(
            "docdesk.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ) as client_cls:
            provider = NomicEmbeddingProvider(backend)
            vector = await provider.embed_single("hello")

        assert len(vector) == 768
        assert client_cls.call_args.kwargs["base_url"] == "http://localhost:11434/v1"
        assert provider.get_dimension() == 768

    def test_is_available_checks_server(self, backend: BackendConfig) -> None:
        from docdesk.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        with patch("docdesk.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI"):
            provider = NomicEmbeddingProvider(backend)

        with patch(
            "docdesk.providers.embedding.nomic_embedding_provider.httpx.get",
            return_value=MagicMock(status_code=200),
        ):
            assert provider.is_available() is True

    def test_is_available_when_server_down(self, backend: BackendConfig) -> None:
        import httpx

        from docdesk.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        with patch("docdesk.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI"):
            provider = NomicEmbeddingProvider(backend)

        with patch(
            "docdesk.providers.embedding.nomic_embedding_provider.httpx.get",
            side_effect=httpx.ConnectError("refused"),
        ):
            assert provider.is_available() is False


# ======================================================================
# Unavailable Embedding Provider
# ======================================================================


class TestUnavailableEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_every_call_fails(self) -> None:
        from docdesk.providers.embedding.unavailable_embedding_provider import UnavailableEmbeddingProvider

        provider = UnavailableEmbeddingProvider("DeepSeek has no embeddings API")

        with pytest.raises(ProviderError, match="DeepSeek has no embeddings API"):
            await provider.embed_single("hello")
        with pytest.raises(ProviderError):
            await provider.embed(["hello"])
        assert provider.get_dimension() == 0
        assert provider.is_available() is False
