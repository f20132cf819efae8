"""Shared pytest fixtures for the docdesk test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docdesk.config.settings import Settings
from docdesk.interfaces.llm_provider import ILLMProvider
from docdesk.providers.storage.memory_storage import MemoryStorageProvider
from helpers import MockEmbeddingProvider, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider returning a fixed answer.

    Override with ``mock_llm_provider.complete.return_value = "..."`` or
    ``mock_llm_provider.complete.side_effect = [...]`` for specific tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.complete = AsyncMock(return_value="Mock answer.")
    return mock


@pytest.fixture
def memory_storage() -> MemoryStorageProvider:
    return MemoryStorageProvider()


@pytest.fixture
def write_file(tmp_path: Path):  # noqa: ANN201
    """Factory fixture: ``write_file("a.txt", "text")`` -> Path under tmp_path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
