"""Typed run settings merged from config.yaml, environment overrides and CLI flags."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic import __version__ as pydantic_version

from walkthrough.core.config import ConfigurationError

LogFormat = Literal["text", "json"]

DEFAULT_WATCHLIST_NAME = "Demo List"
DEFAULT_WATCHLIST_SYMBOLS = ("AAPL", "SPHD", "DIV")


class SettingsError(ConfigurationError):
    """Raised when config.yaml, environment or CLI settings fail validation."""


def ensure_pydantic_v2() -> None:
    """Refuse to run against a pydantic v1 installation."""
    try:
        major = int(pydantic_version.split(".")[0])
    except ValueError:
        return
    if major < 2:
        raise ImportError(
            f"Pydantic v2 is required, but v{pydantic_version} is installed. "
            "Activate the project virtualenv and install the declared dependencies."
        )


ensure_pydantic_v2()


class WatchlistSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = DEFAULT_WATCHLIST_NAME
    symbols: List[str] = Field(default_factory=lambda: list(DEFAULT_WATCHLIST_SYMBOLS))

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("watchlist.name must not be blank")
        return stripped

    @field_validator("symbols")
    @classmethod
    def _normalize_symbols(cls, value: List[str]) -> List[str]:
        symbols = [symbol.strip().upper() for symbol in value if symbol.strip()]
        if not symbols:
            raise ValueError("watchlist.symbols must contain at least one symbol")
        duplicates = sorted({symbol for symbol in symbols if symbols.count(symbol) > 1})
        if duplicates:
            raise ValueError(f"watchlist.symbols contains duplicates: {', '.join(duplicates)}")
        return symbols


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    format: LogFormat = "text"
    log_dir: Path = Path("logs")

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unsupported log level '{value}'")
        return level

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class AppSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    watchlist: WatchlistSettings = Field(default_factory=lambda: WatchlistSettings())
    logging: LoggingSettings = Field(default_factory=lambda: LoggingSettings())


def load_settings(
    path: str | Path = "config.yaml",
    *,
    base_dir: Path | None = None,
    cli_overrides: Dict[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> AppSettings:
    """Load and validate run settings with YAML < env < CLI precedence."""

    environ = os.environ if env is None else env
    config_path = Path(path)
    if base_dir is not None and not config_path.is_absolute():
        config_path = base_dir / config_path
    merged = _read_config_file(config_path)
    merged = _merge_dicts(merged, _build_env_overrides(environ))
    if cli_overrides:
        merged = _merge_dicts(merged, cli_overrides)

    try:
        settings = AppSettings(**merged)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings: {exc}") from exc

    log_dir = settings.logging.log_dir
    if not log_dir.is_absolute():
        root = base_dir or Path.cwd()
        logging_settings = settings.logging.model_copy(update={"log_dir": (root / log_dir).resolve()})
        settings = settings.model_copy(update={"logging": logging_settings})
    return settings


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise SettingsError(f"Unable to parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"{path.name} must contain a mapping at the root level")
    return data


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _build_env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    watchlist: Dict[str, Any] = {}
    logging_section: Dict[str, Any] = {}

    name = _strip_env_var(env, "WALKTHROUGH_WATCHLIST_NAME")
    symbols = _strip_env_var(env, "WALKTHROUGH_WATCHLIST_SYMBOLS")
    level = _strip_env_var(env, "WALKTHROUGH_LOG_LEVEL")
    log_format = _strip_env_var(env, "WALKTHROUGH_LOG_FORMAT")
    log_dir = _strip_env_var(env, "WALKTHROUGH_LOG_DIR")

    if name is not None:
        watchlist["name"] = name
    if symbols is not None:
        watchlist["symbols"] = parse_symbols(symbols)
    if level is not None:
        logging_section["level"] = level
    if log_format is not None:
        logging_section["format"] = log_format
    if log_dir is not None:
        logging_section["log_dir"] = log_dir

    if watchlist:
        overrides["watchlist"] = watchlist
    if logging_section:
        overrides["logging"] = logging_section
    return overrides


def parse_symbols(raw: str) -> List[str]:
    return [token.strip() for token in raw.split(",") if token.strip()]


def _strip_env_var(env: Mapping[str, str], name: str) -> str | None:
    raw = env.get(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


__all__ = [
    "AppSettings",
    "LoggingSettings",
    "SettingsError",
    "WatchlistSettings",
    "load_settings",
    "parse_symbols",
]
