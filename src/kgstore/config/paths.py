"""Centralized path management for kgstore.

State is stored under a single base directory, overridable with the
KGSTORE_HOME environment variable.

Default locations:
- Linux/macOS: ~/.kgstore
- Windows: %USERPROFILE%\\.kgstore
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "KGSTORE_HOME"
# Points straight at a graph directory, bypassing config files
STORAGE_ENV_VAR = "KNOWLEDGE_GRAPH_DIR"


@lru_cache(maxsize=1)
def get_kgstore_home() -> Path:
    """Get the base directory for all kgstore data.

    Resolution order:
    1. KGSTORE_HOME environment variable (if set)
    2. Platform default (~/.kgstore)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".kgstore"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_kgstore_home() / "config.toml"


def get_graph_dir() -> Path:
    """Get the default graph directory (nodes.jsonl, edges.jsonl)."""
    return get_kgstore_home() / "graph"


def get_all_paths() -> dict[str, Path]:
    return {
        "home": get_kgstore_home(),
        "config": get_config_path(),
        "graph": get_graph_dir(),
    }
