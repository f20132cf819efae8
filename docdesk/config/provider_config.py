"""Backend selection resolved once from :class:`Settings` at startup.

:class:`ProviderConfig` is an immutable record naming which generation and
which embedding backend to use, together with the credentials, base URL and
model each one needs.  It is built by :meth:`ProviderConfig.from_settings`
and handed to the provider constructors in :mod:`docdesk.main`; nothing
reads provider selection from module-level state afterwards.

Automatic selection follows a fixed priority:

    generation:  OpenRouter -> DeepSeek -> OpenAI -> Anthropic -> Ollama
    embedding:   OpenRouter -> OpenAI -> Ollama

DeepSeek and Anthropic expose no embeddings endpoint, so a deployment whose
only key is one of those has ``embedding=None`` and answers every query
through keyword retrieval.
"""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from docdesk.config.settings import Settings
from docdesk.utils.errors import ConfigurationError

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEEPSEEK_BASE_URL = "https://api.deepseek.com"

_DEFAULT_CHAT_MODELS: dict[str, str] = {
    "openrouter": "openai/gpt-4o",
    "deepseek": "deepseek-chat",
    "openai": "gpt-4o",
    "anthropic": "claude-sonnet-4-20250514",
    "ollama": "llama3.1",
}

_DEFAULT_EMBEDDING_MODELS: dict[str, str] = {
    "openrouter": "text-embedding-3-small",
    "openai": "text-embedding-3-small",
    "ollama": "nomic-embed-text",
}

_GENERATION_PRIORITY = ("openrouter", "deepseek", "openai", "anthropic", "ollama")
_EMBEDDING_PRIORITY = ("openrouter", "openai", "ollama")


class BackendConfig(BaseModel):
    """Connection details for one backend."""

    model_config = ConfigDict(frozen=True)

    name: str
    api_key: str = ""
    base_url: str | None = None
    model: str


class ProviderConfig(BaseModel):
    """The generation and embedding backends chosen for this process."""

    model_config = ConfigDict(frozen=True)

    generation: BackendConfig | None = None
    embedding: BackendConfig | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderConfig:
        """Resolve backends from *settings*.

        Raises
        ------
        ConfigurationError
            If ``llm_provider`` / ``embedding_provider`` force a backend that
            is unknown, cannot serve that capability, or has no credentials.
        """
        generation = _select(
            settings,
            forced=settings.llm_provider,
            priority=_GENERATION_PRIORITY,
            capability="generation",
            builder=_chat_backend,
        )
        embedding = _select(
            settings,
            forced=settings.embedding_provider,
            priority=_EMBEDDING_PRIORITY,
            capability="embedding",
            builder=_embedding_backend,
        )
        return cls(generation=generation, embedding=embedding)


def _select(
    settings: Settings,
    *,
    forced: str,
    priority: tuple[str, ...],
    capability: str,
    builder: Callable[[Settings, str], BackendConfig | None],
) -> BackendConfig | None:
    forced = forced.strip().lower()
    if forced:
        if forced not in priority:
            raise ConfigurationError(
                message=(
                    f"Unknown {capability} backend '{forced}'. "
                    f"Choose one of: {', '.join(priority)}"
                ),
            )
        backend = builder(settings, forced)
        if backend is None:
            raise ConfigurationError(
                message=f"{capability} backend '{forced}' is forced but not configured",
                provider_name=forced,
            )
        return backend

    for name in priority:
        backend = builder(settings, name)
        if backend is not None:
            return backend
    return None


def _chat_backend(settings: Settings, name: str) -> BackendConfig | None:
    model_override = settings.openai_text_model
    if name == "openrouter" and settings.openrouter_api_key:
        return BackendConfig(
            name=name,
            api_key=settings.openrouter_api_key,
            base_url=OPENROUTER_BASE_URL,
            model=model_override or _DEFAULT_CHAT_MODELS[name],
        )
    if name == "deepseek" and settings.deepseek_api_key:
        return BackendConfig(
            name=name,
            api_key=settings.deepseek_api_key,
            base_url=DEEPSEEK_BASE_URL,
            model=model_override or _DEFAULT_CHAT_MODELS[name],
        )
    if name == "openai" and settings.openai_api_key:
        return BackendConfig(
            name=name,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url or None,
            model=model_override or _DEFAULT_CHAT_MODELS[name],
        )
    if name == "anthropic" and settings.anthropic_api_key:
        return BackendConfig(
            name=name,
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model or _DEFAULT_CHAT_MODELS[name],
        )
    if name == "ollama" and settings.ollama_base_url:
        return BackendConfig(
            name=name,
            base_url=settings.ollama_base_url.rstrip("/"),
            model=_DEFAULT_CHAT_MODELS[name],
        )
    return None


def _embedding_backend(settings: Settings, name: str) -> BackendConfig | None:
    model_override = settings.openai_embedding_model
    if name == "openrouter" and settings.openrouter_api_key:
        return BackendConfig(
            name=name,
            api_key=settings.openrouter_api_key,
            base_url=OPENROUTER_BASE_URL,
            model=model_override or _DEFAULT_EMBEDDING_MODELS[name],
        )
    if name == "openai" and settings.openai_api_key:
        return BackendConfig(
            name=name,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url or None,
            model=model_override or _DEFAULT_EMBEDDING_MODELS[name],
        )
    if name == "ollama" and settings.ollama_base_url:
        return BackendConfig(
            name=name,
            base_url=settings.ollama_base_url.rstrip("/"),
            model=_DEFAULT_EMBEDDING_MODELS[name],
        )
    return None
