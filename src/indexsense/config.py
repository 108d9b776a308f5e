"""
Runtime settings for IndexSense.

Settings come from INDEXSENSE_* environment variables, or from a JSON/YAML
file when INDEXSENSE_CONFIG_FILE points at one. The advisor core only reads
`max_subquery_depth`; the rest drives scanning, reporting and the CLI.

Usage:
    from indexsense.config import get_config

    depth = get_config().max_subquery_depth
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from indexsense.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "INDEXSENSE_"
CONFIG_FILE_VAR = f"{ENV_PREFIX}CONFIG_FILE"

DEFAULT_MAX_SUBQUERY_DEPTH = 32
DEFAULT_SCAN_EXTENSIONS = (".rs",)
DEFAULT_SKIP_DIRS = ("target", "node_modules", ".git", "dist")
DEFAULT_OUTPUT_DIR = "target/indexsense_indexes"
DEFAULT_LOG_LEVEL = "WARNING"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class Config(BaseModel):
    """Immutable IndexSense settings."""

    model_config = ConfigDict(frozen=True)

    max_subquery_depth: int = Field(
        default=DEFAULT_MAX_SUBQUERY_DEPTH,
        ge=0,
        description="Deepest subquery level visited during alias resolution",
    )
    scan_extensions: tuple[str, ...] = Field(
        default=DEFAULT_SCAN_EXTENSIONS,
        description="File extensions searched for query call sites",
    )
    skip_dirs: tuple[str, ...] = Field(
        default=DEFAULT_SKIP_DIRS,
        description="Directory names never descended into while scanning",
    )
    output_dir: str = Field(
        default=DEFAULT_OUTPUT_DIR,
        description="Directory (relative to the project root) for generated scripts",
    )
    quote_identifiers: bool = Field(
        default=True,
        description="Double-quote table and column names in generated SQL",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Root log level used by the CLI",
    )


def _env(name: str) -> str | None:
    return os.environ.get(ENV_PREFIX + name)


def _env_flag(name: str, default: bool) -> bool:
    raw = _env(name)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("%s%s=%r is not an integer, using %d", ENV_PREFIX, name, raw, default)
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Comma-separated values; blank entries dropped, all-blank means default."""
    raw = _env(name)
    if raw is None:
        return default
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or default


def load_config_from_env() -> Config:
    """
    Build settings from the environment.

    Recognized variables (all optional):
        INDEXSENSE_MAX_SUBQUERY_DEPTH   integer, negatives clamp to 0
        INDEXSENSE_SCAN_EXTENSIONS      e.g. ".rs,.sql"
        INDEXSENSE_SKIP_DIRS            e.g. "target,vendor"
        INDEXSENSE_OUTPUT_DIR           e.g. "build/indexes"
        INDEXSENSE_QUOTE_IDENTIFIERS    true/false
        INDEXSENSE_LOG_LEVEL            DEBUG, INFO, ...
    """
    settings: dict[str, Any] = {
        "max_subquery_depth": max(0, _env_int("MAX_SUBQUERY_DEPTH", DEFAULT_MAX_SUBQUERY_DEPTH)),
        "scan_extensions": _env_list("SCAN_EXTENSIONS", DEFAULT_SCAN_EXTENSIONS),
        "skip_dirs": _env_list("SKIP_DIRS", DEFAULT_SKIP_DIRS),
        "output_dir": _env("OUTPUT_DIR") or DEFAULT_OUTPUT_DIR,
        "quote_identifiers": _env_flag("QUOTE_IDENTIFIERS", True),
        "log_level": (_env("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    }
    return Config(**settings)


def _read_mapping(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        import yaml

        try:
            return yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ValueError(str(e)) from e
    return json.loads(text)


def load_config_from_file(path: Path) -> Config:
    """
    Build settings from a JSON or YAML mapping.

    YAML needs the optional PyYAML dependency (`indexsense[yaml]`).

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid.
    """
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}", config_key=CONFIG_FILE_VAR)

    try:
        data = _read_mapping(path)
    except ImportError as e:
        raise ConfigurationError(
            "PyYAML is required for YAML config files (pip install indexsense[yaml])",
            config_key=CONFIG_FILE_VAR,
        ) from e
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to read config from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config in {path}: {e}") from e


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Process-wide settings, loaded once.

    INDEXSENSE_CONFIG_FILE wins over the individual variables.
    """
    config_file = os.environ.get(CONFIG_FILE_VAR)
    if config_file:
        return load_config_from_file(Path(config_file))
    return load_config_from_env()


def reset_config() -> None:
    """Drop the cached settings so the next get_config() reloads them."""
    get_config.cache_clear()
