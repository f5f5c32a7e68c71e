"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import sys
import tomllib
from pathlib import Path
from typing import Any, TextIO

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


class ConfigError(Exception):
    """Config file unreadable or holding an invalid value."""


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Error parsing {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Error reading {path}: {e}") from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    if not default_path.exists():
        raise ConfigError(f"Config not found: {default_path}")
    base = _load_toml(default_path)
    if profile:
        profile_path = directory / f"{profile}.toml"
        if not profile_path.exists():
            raise ConfigError(f"Profile not found: {profile_path}")
        base = _deep_merge(base, _load_toml(profile_path))
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return validated Settings from merged config."""
    raw = load_config(profile, config_dir)
    settings = Settings.from_dict(raw)
    settings.validate()
    return settings


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        api: dict[str, Any] | None = None,
        search: dict[str, Any] | None = None,
        export: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.api = api or {}
        self.search = search or {}
        self.export = export or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            api=raw.get("api"),
            search=raw.get("search"),
            export=raw.get("export"),
            logging=raw.get("logging"),
        )

    def validate(self) -> None:
        """Raise ConfigError on values that would break a run."""
        try:
            checks = [
                ("search.page_size", self.page_size > 0),
                ("api.rate_limit_delay_ms", self.rate_limit_delay_ms >= 0),
                ("api.http_timeout_sec", self.http_timeout_sec > 0),
                ("api.max_retries", self.max_retries >= 0),
                ("api.initial_backoff_sec", self.initial_backoff_sec >= 0),
                ("api.history_fidelity", self.history_fidelity > 0),
                ("search.page_delay_sec", self.page_delay_sec >= 0),
                ("search.page_retry_delay_sec", self.page_retry_delay_sec >= 0),
                ("search.max_page_retries", self.max_page_retries >= 0),
                ("export.export_file_pattern", "{timestamp}" in self.export_file_pattern),
            ]
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}") from e
        for name, ok in checks:
            if not ok:
                raise ConfigError(f"Invalid config value for {name}")

    # [api]
    @property
    def gamma_api_base(self) -> str:
        return self.api.get("gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def clob_api_base(self) -> str:
        return self.api.get("clob_api_base", "https://clob.polymarket.com")

    @property
    def rate_limit_delay_ms(self) -> int:
        return int(self.api.get("rate_limit_delay_ms", 500))

    @property
    def http_timeout_sec(self) -> float:
        return float(self.api.get("http_timeout_sec", 30.0))

    @property
    def max_retries(self) -> int:
        return int(self.api.get("max_retries", 3))

    @property
    def initial_backoff_sec(self) -> float:
        return float(self.api.get("initial_backoff_sec", 1.0))

    @property
    def history_fidelity(self) -> int:
        return int(self.api.get("history_fidelity", 60))

    # [search]
    @property
    def search_pattern(self) -> str:
        return self.search.get("search_pattern", "Bitcoin price on")

    @property
    def tag(self) -> str:
        return self.search.get("tag", "Crypto")

    @property
    def only_closed(self) -> bool:
        return bool(self.search.get("only_closed", True))

    @property
    def only_archived(self) -> bool:
        return bool(self.search.get("only_archived", True))

    @property
    def page_size(self) -> int:
        return int(self.search.get("page_size", 100))

    @property
    def page_delay_sec(self) -> float:
        return float(self.search.get("page_delay_sec", 0.1))

    @property
    def page_retry_delay_sec(self) -> float:
        return float(self.search.get("page_retry_delay_sec", 5.0))

    @property
    def max_page_retries(self) -> int:
        return int(self.search.get("max_page_retries", 0))

    @property
    def target_outcome(self) -> str:
        return self.search.get("target_outcome", "Yes")

    # [export]
    @property
    def output_directory(self) -> str:
        return self.export.get("output_directory", "./output")

    @property
    def processed_markets_file(self) -> str:
        return self.export.get("processed_markets_file", "./cache/processed_markets.txt")

    @property
    def export_file_pattern(self) -> str:
        return self.export.get("export_file_pattern", "bitcoin_price_history_{timestamp}.csv")

    # [logging]
    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def _renderers(fmt: str, stream: TextIO) -> list[Any]:
    import structlog

    if fmt == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=stream.isatty())]


def configure_logging(settings: Settings, stream: TextIO | None = None) -> None:
    """Send structlog output to stderr so stdout carries only the run summary.

    Call once at application entry.
    """
    import structlog

    stream = stream or sys.stderr
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=True),
            *_renderers(settings.logging_format, stream),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )
