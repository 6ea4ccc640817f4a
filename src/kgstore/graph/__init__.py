"""Embedded graph store of typed nodes and typed, weighted edges.

Public API:
- GraphStore: create, look up, query and traverse nodes and edges
- create_graph_store: Factory that loads a persisted graph

Types:
- Node, Edge: Stored records
- NodeCreate, EdgeCreate: Creation inputs
- NodeQuery, EdgeQuery: Conjunctive filters
- Neighbor, Direction: Traversal results and directions
- GraphStats: Record counts

Errors:
- GraphStoreError, GraphValidationError, NodeReferenceError, StorageError

Internal:
- KnowledgeGraph: In-memory indexes (use GraphStore instead)
- GraphPersistence: JSONL load/save
"""

from kgstore.graph.errors import (
    GraphStoreError,
    GraphValidationError,
    NodeReferenceError,
    StorageError,
)
from kgstore.graph.export import ExportFormat
from kgstore.graph.store import GraphStore, create_graph_store
from kgstore.graph.types import (
    Direction,
    Edge,
    EdgeCreate,
    EdgeQuery,
    GraphStats,
    Neighbor,
    Node,
    NodeCreate,
    NodeQuery,
    PropertyValue,
)

__all__ = [
    "Direction",
    "Edge",
    "EdgeCreate",
    "EdgeQuery",
    "ExportFormat",
    "GraphStats",
    "GraphStore",
    "GraphStoreError",
    "GraphValidationError",
    "Neighbor",
    "Node",
    "NodeCreate",
    "NodeQuery",
    "NodeReferenceError",
    "PropertyValue",
    "StorageError",
    "create_graph_store",
]
