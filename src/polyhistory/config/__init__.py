"""Configuration: TOML files with optional profile overlay."""

from polyhistory.config.settings import ConfigError, Settings, get_settings

__all__ = ["ConfigError", "Settings", "get_settings"]
