"""Configuration loading from TOML files and environment variables."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from kgstore.config.models import ConfigError, GraphConfig
from kgstore.config.paths import STORAGE_ENV_VAR, get_config_path, get_graph_dir

logger = logging.getLogger(__name__)


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("kgstore.toml"),  # Current directory
        get_config_path(),  # ~/.kgstore/config.toml (or KGSTORE_HOME)
    ]


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    if storage_dir := os.environ.get(STORAGE_ENV_VAR):
        config["storage_path"] = storage_dir
    return config


def load_config(path: Path | None = None) -> GraphConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default locations
            and falls back to ``get_default_config()`` when none exists.

    Returns:
        Validated GraphConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the config file is not valid TOML or fails validation.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    if config_path is None:
        logger.debug("No config file found, using defaults")
        raw_config: dict[str, Any] = get_default_config().model_dump()
    else:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    raw_config = _apply_env_overrides(raw_config)

    try:
        return GraphConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def get_default_config() -> GraphConfig:
    """Get a default configuration persisting under the kgstore home."""
    return GraphConfig(storage_path=get_graph_dir())
