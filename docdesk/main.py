"""docdesk FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and starts the background ingestion workers for the
lifetime of the application.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from docdesk import __version__
from docdesk.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docdesk.api.routes import router as api_router
from docdesk.config.loader import load_settings
from docdesk.config.provider_config import ProviderConfig
from docdesk.config.settings import Settings
from docdesk.interfaces.embedding_provider import IEmbeddingProvider
from docdesk.interfaces.llm_provider import ILLMProvider
from docdesk.interfaces.storage_provider import IStorageProvider
from docdesk.providers.cache.memory_cache import MemoryCacheProvider
from docdesk.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from docdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docdesk.providers.embedding.unavailable_embedding_provider import (
    UnavailableEmbeddingProvider,
)
from docdesk.providers.llm.anthropic_provider import AnthropicLLMProvider
from docdesk.providers.llm.ollama_provider import OllamaLLMProvider
from docdesk.providers.llm.openai_provider import OpenAILLMProvider
from docdesk.providers.llm.unavailable_provider import UnavailableLLMProvider
from docdesk.providers.storage.memory_storage import MemoryStorageProvider
from docdesk.providers.storage.sqlite_storage import SQLiteStorageProvider
from docdesk.services.chat_service import ChatService
from docdesk.services.ingestion.chunker import WordChunker
from docdesk.services.ingestion.ingestion_queue import IngestionQueue
from docdesk.services.ingestion.ingestion_service import IngestionService
from docdesk.services.retrieval.keyword_search import KeywordSearcher
from docdesk.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = load_settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(provider_config: ProviderConfig) -> ILLMProvider:
    """Instantiate the generation backend chosen in *provider_config*.

    OpenRouter, DeepSeek and OpenAI all speak the OpenAI chat protocol and
    share one adapter.  With no backend configured the app still starts
    and chat turns fail with a provider error.
    """
    backend = provider_config.generation
    if backend is None:
        return UnavailableLLMProvider()
    if backend.name == "anthropic":
        return AnthropicLLMProvider(backend)
    if backend.name == "ollama":
        return OllamaLLMProvider(backend)
    return OpenAILLMProvider(backend)


def _build_embedding_provider(provider_config: ProviderConfig) -> IEmbeddingProvider:
    """Instantiate the embedding backend chosen in *provider_config*.

    Without one, every query is answered through keyword retrieval.
    """
    backend = provider_config.embedding
    if backend is None:
        return UnavailableEmbeddingProvider()
    if backend.name == "ollama":
        return NomicEmbeddingProvider(backend)
    return OpenAIEmbeddingProvider(backend)


def _build_storage(app_settings: Settings) -> IStorageProvider:
    if app_settings.storage_backend == "sqlite":
        return SQLiteStorageProvider(db_path=app_settings.sqlite_db_path)
    return MemoryStorageProvider()


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.

    Raises:
        ConfigurationError: if a forced backend is unknown or unconfigured.
    """
    provider_config = ProviderConfig.from_settings(app_settings)

    storage = _build_storage(app_settings)
    embedding_provider = _build_embedding_provider(provider_config)
    primary_llm = _build_llm_provider(provider_config)
    cache = MemoryCacheProvider(
        max_size=app_settings.embedding_cache_size,
        ttl=app_settings.embedding_cache_ttl,
    )

    ingestion_service = IngestionService(
        storage=storage,
        embedding_provider=embedding_provider,
        chunker=WordChunker(max_words=app_settings.chunk_max_words),
    )
    ingestion_queue = IngestionQueue(ingestion_service, workers=app_settings.ingestion_workers)

    chat_service = ChatService(
        storage=storage,
        embedding_provider=embedding_provider,
        llm=primary_llm,
        cache=cache,
        keyword_searcher=KeywordSearcher(max_results=app_settings.keyword_max_results),
        top_k=app_settings.retrieval_top_k,
    )

    return {
        "settings": app_settings,
        "provider_config": provider_config,
        "storage": storage,
        "embedding_provider": embedding_provider,
        "primary_llm": primary_llm,
        "cache": cache,
        "ingestion_service": ingestion_service,
        "ingestion_queue": ingestion_queue,
        "chat_service": chat_service,
    }


def build_components(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Assemble the same components as the web app, for CLI or scripting use.

    The caller owns the lifecycle: ``await components["storage"].initialize()``
    before use and ``close()`` afterwards.
    """
    return _build_all(custom_settings or settings)


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise storage and ingestion workers on startup, drain them on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    storage: IStorageProvider = components["storage"]
    queue: IngestionQueue = components["ingestion_queue"]
    chat_service: ChatService = components["chat_service"]

    await storage.initialize()
    queue.start()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        storage=settings.storage_backend,
        primary_llm=components["primary_llm"].get_provider_name(),
        embedding=components["embedding_provider"].get_provider_name(),
        configured_llms=settings.get_available_llm_providers(),
    )

    yield

    await queue.stop(drain=True)
    await chat_service.drain()
    await storage.close()
    _logger.info(
        "app_shutdown",
        documents_processed=queue.processed,
        documents_failed=queue.failed,
    )


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="docdesk API",
        version=__version__,
        description=(
            "Upload internal documents, index them for retrieval, and ask "
            "questions answered from their content with source attribution."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "docdesk.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
