"""Configuration module."""

from kgstore.config.loader import get_default_config, load_config
from kgstore.config.models import ConfigError, GraphConfig
from kgstore.config.paths import (
    get_config_path,
    get_graph_dir,
    get_kgstore_home,
)

__all__ = [
    "ConfigError",
    "GraphConfig",
    "get_config_path",
    "get_default_config",
    "get_graph_dir",
    "get_kgstore_home",
    "load_config",
]
