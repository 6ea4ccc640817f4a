"""Shared test fixtures."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from kgstore.config.models import GraphConfig
from kgstore.config.paths import ENV_VAR, STORAGE_ENV_VAR, get_kgstore_home
from kgstore.graph.store import GraphStore, create_graph_store

# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture
def kgstore_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point KGSTORE_HOME at a temp dir and reset the cached home path."""
    home = tmp_path / "kgstore-home"
    home.mkdir()
    monkeypatch.setenv(ENV_VAR, str(home))
    monkeypatch.delenv(STORAGE_ENV_VAR, raising=False)
    get_kgstore_home.cache_clear()
    yield home
    get_kgstore_home.cache_clear()


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store() -> GraphStore:
    """Fresh in-memory store."""
    return GraphStore()


@pytest.fixture
def graph_dir(tmp_path: Path) -> Path:
    return tmp_path / "graph"


@pytest.fixture
async def persisted_store(graph_dir: Path) -> GraphStore:
    """Fresh store persisting to a temp directory."""
    return await create_graph_store(GraphConfig(storage_path=graph_dir))

