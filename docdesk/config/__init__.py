"""Configuration: environment settings, YAML loading and backend selection."""

from docdesk.config.loader import load_config, load_settings
from docdesk.config.provider_config import BackendConfig, ProviderConfig
from docdesk.config.settings import Settings

__all__ = ["BackendConfig", "ProviderConfig", "Settings", "load_config", "load_settings"]
