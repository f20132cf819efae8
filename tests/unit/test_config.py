"""Unit tests for backend selection and the layered settings loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from docdesk.config.loader import load_config, load_settings
from docdesk.config.provider_config import (
    DEEPSEEK_BASE_URL,
    OPENROUTER_BASE_URL,
    BackendConfig,
    ProviderConfig,
    _select,
)
from docdesk.utils.errors import ConfigurationError
from helpers import make_settings


# ======================================================================
# ProviderConfig.from_settings
# ======================================================================


class TestProviderConfig:
    def test_nothing_configured(self) -> None:
        config = ProviderConfig.from_settings(make_settings())
        assert config.generation is None
        assert config.embedding is None

    def test_openrouter_wins_both_capabilities(self) -> None:
        config = ProviderConfig.from_settings(
            make_settings(openrouter_api_key="sk-or", openai_api_key="sk-oa", anthropic_api_key="sk-an")
        )

        assert config.generation is not None
        assert config.generation.name == "openrouter"
        assert config.generation.base_url == OPENROUTER_BASE_URL
        assert config.generation.model == "openai/gpt-4o"
        assert config.embedding is not None
        assert config.embedding.name == "openrouter"
        assert config.embedding.model == "text-embedding-3-small"

    def test_deepseek_has_no_embedding_backend(self) -> None:
        config = ProviderConfig.from_settings(make_settings(deepseek_api_key="sk-ds"))

        assert config.generation is not None
        assert config.generation.name == "deepseek"
        assert config.generation.base_url == DEEPSEEK_BASE_URL
        assert config.embedding is None

    def test_anthropic_only_has_no_embedding_backend(self) -> None:
        config = ProviderConfig.from_settings(make_settings(anthropic_api_key="sk-an"))

        assert config.generation is not None
        assert config.generation.name == "anthropic"
        assert config.embedding is None

    def test_deepseek_generation_with_openai_embeddings(self) -> None:
        config = ProviderConfig.from_settings(make_settings(deepseek_api_key="sk-ds", openai_api_key="sk-oa"))

        assert config.generation is not None and config.generation.name == "deepseek"
        assert config.embedding is not None and config.embedding.name == "openai"

    def test_ollama_serves_both_locally(self) -> None:
        config = ProviderConfig.from_settings(make_settings(ollama_base_url="http://localhost:11434/"))

        assert config.generation is not None
        assert config.generation.model == "llama3.1"
        assert config.generation.base_url == "http://localhost:11434"
        assert config.embedding is not None
        assert config.embedding.model == "nomic-embed-text"

    def test_model_overrides(self) -> None:
        config = ProviderConfig.from_settings(
            make_settings(
                openai_api_key="sk-oa",
                openai_text_model="gpt-4o-mini",
                openai_embedding_model="text-embedding-3-large",
            )
        )

        assert config.generation is not None and config.generation.model == "gpt-4o-mini"
        assert config.embedding is not None and config.embedding.model == "text-embedding-3-large"

    def test_forced_backend_skips_priority(self) -> None:
        config = ProviderConfig.from_settings(
            make_settings(openrouter_api_key="sk-or", openai_api_key="sk-oa", llm_provider="OpenAI")
        )

        assert config.generation is not None and config.generation.name == "openai"
        assert config.embedding is not None and config.embedding.name == "openrouter"

    def test_forced_unknown_backend_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown generation backend 'gemini'"):
            ProviderConfig.from_settings(make_settings(llm_provider="gemini"))

    def test_forced_backend_without_credentials_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="forced but not configured") as exc_info:
            ProviderConfig.from_settings(make_settings(openai_api_key="sk-oa", llm_provider="anthropic"))
        assert exc_info.value.provider_name == "anthropic"

    def test_forced_embedding_on_generation_only_backend_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            ProviderConfig.from_settings(make_settings(deepseek_api_key="sk-ds", embedding_provider="deepseek"))

    def test_available_llm_providers_in_priority_order(self) -> None:
        settings = make_settings(ollama_base_url="http://x", anthropic_api_key="a", openrouter_api_key="o")
        assert settings.get_available_llm_providers() == ["openrouter", "anthropic", "ollama"]

    def test_select_walks_priority_with_given_builder(self) -> None:
        calls: list[str] = []

        def builder(settings, name: str) -> BackendConfig | None:
            calls.append(name)
            return BackendConfig(name=name, model="m") if name == "second" else None

        backend = _select(
            make_settings(),
            forced="",
            priority=("first", "second", "third"),
            capability="generation",
            builder=builder,
        )

        assert backend is not None and backend.name == "second"
        assert calls == ["first", "second"]

    def test_select_normalises_forced_name(self) -> None:
        backend = _select(
            make_settings(),
            forced="  Second ",
            priority=("first", "second"),
            capability="embedding",
            builder=lambda settings, name: BackendConfig(name=name, model="m"),
        )

        assert backend is not None and backend.name == "second"


# ======================================================================
# Settings validation
# ======================================================================


class TestSettingsValidation:
    def test_extensions_are_normalised(self) -> None:
        settings = make_settings(allowed_extensions=["PDF", ".Md"])
        assert settings.allowed_extensions == [".pdf", ".md"]

    def test_unknown_storage_backend_rejected(self) -> None:
        with pytest.raises(ValueError, match="storage_backend"):
            make_settings(storage_backend="postgres")


# ======================================================================
# YAML loader
# ======================================================================


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working directory (no .env) with a config/ folder and a clean environment."""
    monkeypatch.chdir(tmp_path)
    for var in ("APP_ENV", "RETRIEVAL_TOP_K", "STORAGE_BACKEND", "CHUNK_MAX_WORDS", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    directory = tmp_path / "config"
    directory.mkdir()
    return directory


class TestLoader:
    def test_missing_file_yields_empty_config(self, tmp_path: Path) -> None:
        assert load_config(str(tmp_path / "nope.yaml")) == {}

    def test_overlay_is_deep_merged(self, config_dir: Path) -> None:
        (config_dir / "config.yaml").write_text(
            "retrieval:\n  top_k: 5\n  chunk_max_words: 500\n", encoding="utf-8"
        )
        (config_dir / "config.staging.yaml").write_text("retrieval:\n  top_k: 8\n", encoding="utf-8")

        config = load_config(str(config_dir / "config.yaml"), app_env="staging")

        assert config == {"retrieval": {"top_k": 8, "chunk_max_words": 500}}

    def test_yaml_values_reach_settings(self, config_dir: Path) -> None:
        (config_dir / "config.yaml").write_text(
            "retrieval:\n  top_k: 7\n  chunk_max_words: 300\nstorage:\n  backend: sqlite\n",
            encoding="utf-8",
        )

        settings = load_settings(str(config_dir / "config.yaml"))

        assert settings.retrieval_top_k == 7
        assert settings.chunk_max_words == 300
        assert settings.storage_backend == "sqlite"

    def test_environment_outranks_yaml(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (config_dir / "config.yaml").write_text("retrieval:\n  top_k: 7\n", encoding="utf-8")
        monkeypatch.setenv("RETRIEVAL_TOP_K", "11")

        settings = load_settings(str(config_dir / "config.yaml"))

        assert settings.retrieval_top_k == 11

    def test_non_mapping_section_raises(self, config_dir: Path) -> None:
        (config_dir / "config.yaml").write_text("retrieval: 5\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="retrieval"):
            load_settings(str(config_dir / "config.yaml"))

    def test_shipped_config_loads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("APP_ENV", raising=False)
        shipped = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

        config = load_config(str(shipped))

        assert config["retrieval"]["chunk_max_words"] == 500
        assert config["uploads"]["allowed_extensions"] == [".docx", ".txt", ".md", ".pdf"]
