"""Application settings loaded from environment variables via pydantic-settings.

Values are read from, in priority order:

  1. Environment variables, e.g. ``OPENROUTER_API_KEY=sk-or-...``
  2. A ``.env`` file in the working directory

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  An empty
string means "not configured": provider selection in
:mod:`docdesk.config.provider_config` skips backends with empty keys and
falls through to the next one.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docdesk application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Generation / embedding backends ===
    openrouter_api_key: str = ""
    deepseek_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for another OpenAI-compatible API
    openai_text_model: str = ""  # Override the chat model for the selected backend
    openai_embedding_model: str = ""  # Override the embedding model
    anthropic_api_key: str = ""
    anthropic_model: str = ""
    ollama_base_url: str = ""  # Empty = Ollama disabled
    # Force a backend instead of the priority order ("" = automatic).
    llm_provider: str = ""
    embedding_provider: str = ""

    # === Storage ===
    storage_backend: str = "memory"  # "memory" or "sqlite"
    sqlite_db_path: str = "data/docdesk.db"

    # === Uploads ===
    upload_dir: str = "data/uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_extensions: list[str] = [".docx", ".txt", ".md", ".pdf"]

    # === Retrieval pipeline ===
    chunk_max_words: int = 500
    retrieval_top_k: int = 5
    keyword_max_results: int = 5
    ingestion_workers: int = 2

    # === Query-embedding cache ===
    embedding_cache_size: int = 512
    embedding_cache_ttl: int = 3600

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @field_validator("storage_backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in ("memory", "sqlite"):
            msg = f"storage_backend must be 'memory' or 'sqlite', got {value!r}"
            raise ValueError(msg)
        return normalized

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    def get_available_llm_providers(self) -> list[str]:
        """Return generation backends that have credentials configured, in priority order."""
        providers: list[str] = []
        if self.openrouter_api_key:
            providers.append("openrouter")
        if self.deepseek_api_key:
            providers.append("deepseek")
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
