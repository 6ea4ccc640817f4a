"""kgstore - embedded knowledge graph store."""

from kgstore.config import GraphConfig, load_config
from kgstore.graph import (
    Direction,
    Edge,
    EdgeCreate,
    EdgeQuery,
    GraphStats,
    GraphStore,
    GraphStoreError,
    GraphValidationError,
    Neighbor,
    Node,
    NodeCreate,
    NodeQuery,
    NodeReferenceError,
    StorageError,
    create_graph_store,
)

__version__ = "0.1.0"

__all__ = [
    "Direction",
    "Edge",
    "EdgeCreate",
    "EdgeQuery",
    "GraphConfig",
    "GraphStats",
    "GraphStore",
    "GraphStoreError",
    "GraphValidationError",
    "Neighbor",
    "Node",
    "NodeCreate",
    "NodeQuery",
    "NodeReferenceError",
    "StorageError",
    "create_graph_store",
    "load_config",
]
