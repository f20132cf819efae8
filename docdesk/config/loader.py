"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. ``config/config.yaml``          -- static defaults checked into the repo
  2. ``config/config.<APP_ENV>.yaml`` -- optional per-environment overlay
  3. ``.env`` file / environment     -- read by :class:`Settings`

The YAML files are grouped into sections (``storage``, ``uploads``,
``retrieval``, ...).  :func:`load_settings` flattens them onto the
matching :class:`Settings` fields; any field that was set from the
environment keeps its environment value.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from docdesk.config.settings import Settings
from docdesk.utils.errors import ConfigurationError

# (section, key) in YAML -> Settings field name.
_FIELD_MAP: dict[tuple[str, str], str] = {
    ("app", "host"): "app_host",
    ("app", "port"): "app_port",
    ("app", "env"): "app_env",
    ("logging", "level"): "log_level",
    ("storage", "backend"): "storage_backend",
    ("storage", "sqlite_db_path"): "sqlite_db_path",
    ("uploads", "dir"): "upload_dir",
    ("uploads", "max_bytes"): "max_upload_bytes",
    ("uploads", "allowed_extensions"): "allowed_extensions",
    ("retrieval", "chunk_max_words"): "chunk_max_words",
    ("retrieval", "top_k"): "retrieval_top_k",
    ("retrieval", "keyword_max_results"): "keyword_max_results",
    ("ingestion", "workers"): "ingestion_workers",
    ("cache", "embedding_size"): "embedding_cache_size",
    ("cache", "embedding_ttl"): "embedding_cache_ttl",
    ("providers", "llm"): "llm_provider",
    ("providers", "embedding"): "embedding_provider",
}


def load_config(path: str = "config/config.yaml", app_env: str | None = None) -> dict:
    """Read the base YAML config and deep-merge the environment overlay onto it.

    Args:
        path: Path to the base YAML configuration file.  A missing file
              yields an empty config.
        app_env: Environment name used to locate the overlay file
                 (``config.<app_env>.yaml`` beside *path*).

    Returns:
        The merged configuration dictionary.
    """
    config_path = Path(path)
    config = _read_yaml(config_path)
    if app_env:
        overlay_path = config_path.with_name(f"{config_path.stem}.{app_env}{config_path.suffix}")
        _deep_merge(config, _read_yaml(overlay_path))
    return config


def load_settings(path: str = "config/config.yaml") -> Settings:
    """Build :class:`Settings` from YAML defaults with environment overrides.

    Raises:
        ConfigurationError: if a YAML section is not a mapping.
    """
    env_settings = Settings()
    config = load_config(path, app_env=env_settings.app_env)

    yaml_values: dict[str, Any] = {}
    for (section, key), field_name in _FIELD_MAP.items():
        section_values = config.get(section)
        if section_values is None:
            continue
        if not isinstance(section_values, dict):
            raise ConfigurationError(
                message=f"Config section '{section}' must be a mapping, got {type(section_values).__name__}",
            )
        if key in section_values:
            yaml_values[field_name] = section_values[key]

    # Init kwargs outrank the environment in pydantic-settings, so re-apply
    # the fields the environment actually set on top of the YAML values.
    env_values = env_settings.model_dump(include=env_settings.model_fields_set)
    return Settings(**{**yaml_values, **env_values})


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
