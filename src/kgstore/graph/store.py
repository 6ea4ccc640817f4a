"""Graph store facade.

The public contract over an in-memory KnowledgeGraph. Every mutation
updates in-memory state and then persists the touched collection to JSONL
atomically; if persisting fails, the in-memory change is rolled back before
the error propagates.

A single asyncio.Lock serializes all operations, reads included, so no
caller observes a write whose persistence is still in flight.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar

from kgstore.config.models import GraphConfig
from kgstore.graph import export
from kgstore.graph.errors import GraphValidationError, NodeReferenceError
from kgstore.graph.graph import KnowledgeGraph
from kgstore.graph.persistence import GraphPersistence, hydrate_graph
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
    parse_direction,
    validate_input,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def _paginate(items: list[_T], offset: int, limit: int | None) -> list[_T]:
    end = None if limit is None else offset + limit
    return items[offset:end]


def _validate_items(model: type[Any], items: Iterable[Any]) -> list[Any]:
    """Validate every item of a bulk request, naming the first bad index."""
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        raise GraphValidationError(
            f"Bulk input must be a sequence of {model.__name__} items"
        )
    specs = []
    for i, item in enumerate(items):
        try:
            specs.append(validate_input(model, item))
        except GraphValidationError as e:
            raise GraphValidationError(f"Item {i}: {e}", errors=e.errors) from e
    return specs


class GraphStore:
    """Embedded store of typed nodes and typed, weighted, directed edges.

    Records handed to callers are deep copies; nothing returned aliases
    store state. Pass ``persistence=None`` for a purely in-memory store.
    """

    def __init__(
        self,
        graph: KnowledgeGraph | None = None,
        persistence: GraphPersistence | None = None,
    ) -> None:
        self._graph = graph if graph is not None else KnowledgeGraph()
        self._persistence = persistence
        self._lock = asyncio.Lock()

    @property
    def persistence(self) -> GraphPersistence | None:
        return self._persistence

    @property
    def node_count(self) -> int:
        return len(self._graph.nodes)

    @property
    def edge_count(self) -> int:
        return len(self._graph.edges)

    # -- Internals --

    def _new_id(self, prefix: str) -> str:
        while True:
            candidate = f"{prefix}-{uuid.uuid4().hex}"
            if candidate not in self._graph.nodes and candidate not in self._graph.edges:
                return candidate

    def _build_node(self, spec: NodeCreate, now: datetime) -> Node:
        return Node(
            id=self._new_id("n"),
            type=spec.type,
            label=spec.label,
            properties=copy.deepcopy(spec.properties),
            created_at=now,
        )

    def _build_edge(self, spec: EdgeCreate, now: datetime) -> Edge:
        return Edge(
            id=self._new_id("e"),
            source_id=spec.source_id,
            target_id=spec.target_id,
            type=spec.type,
            weight=spec.weight,
            properties=copy.deepcopy(spec.properties),
            created_at=now,
        )

    def _check_endpoints(self, specs: Sequence[EdgeCreate]) -> None:
        missing: list[str] = []
        for spec in specs:
            for node_id in (spec.source_id, spec.target_id):
                if not self._graph.has_node(node_id) and node_id not in missing:
                    missing.append(node_id)
        if missing:
            logger.info("edge_rejected", extra={"node.missing_ids": missing})
            raise NodeReferenceError(missing)

    async def _persist(self, collection: str, rollback: Callable[[], None]) -> None:
        """Flush ``collection``; undo the in-memory change if that fails.

        The write runs in a worker thread that cannot be interrupted, so a
        cancelled caller still waits for it to land before the lock is
        released. Otherwise a later flush could be overwritten on disk.
        """
        if self._persistence is None:
            return
        self._persistence.mark_dirty(collection)
        flush = asyncio.ensure_future(self._persistence.flush(self._graph))
        try:
            await asyncio.shield(flush)
        except asyncio.CancelledError:
            await asyncio.wait({flush})
            if not flush.cancelled() and flush.exception() is not None:
                rollback()
            raise
        except Exception:
            rollback()
            logger.warning(
                "graph_flush_failed",
                extra={"collection": collection},
                exc_info=True,
            )
            raise

    def _neighbor(self, edge: Edge, node_id: str, direction: str) -> Neighbor:
        node = self._graph.nodes[edge.other_end(node_id)]
        return Neighbor(
            node=node.model_copy(deep=True),
            edge=edge.model_copy(deep=True),
            direction=direction,
        )

    # -- Nodes --

    async def create_node(self, data: NodeCreate | Mapping[str, Any]) -> Node:
        """Create a node from ``type``, ``label`` and optional ``properties``."""
        spec = validate_input(NodeCreate, data)
        async with self._lock:
            node = self._build_node(spec, datetime.now(UTC))
            self._graph.add_node(node)
            await self._persist("nodes", lambda: self._graph.discard_node(node.id))
        logger.debug("node_created", extra={"node.id": node.id, "node.type": node.type})
        return node.model_copy(deep=True)

    async def bulk_create_nodes(
        self, items: Iterable[NodeCreate | Mapping[str, Any]]
    ) -> list[Node]:
        """Create several nodes with a single flush. All or nothing."""
        specs = _validate_items(NodeCreate, items)
        async with self._lock:
            now = datetime.now(UTC)
            nodes: list[Node] = []
            for spec in specs:
                node = self._build_node(spec, now)
                self._graph.add_node(node)
                nodes.append(node)

            def rollback() -> None:
                for n in nodes:
                    self._graph.discard_node(n.id)

            await self._persist("nodes", rollback)
        logger.debug("nodes_created", extra={"count": len(nodes)})
        return [n.model_copy(deep=True) for n in nodes]

    async def get_node(self, node_id: object) -> Node | None:
        """Return the node with ``node_id``, or None. Never raises."""
        if not isinstance(node_id, str):
            return None
        async with self._lock:
            node = self._graph.get_node(node_id)
            return node.model_copy(deep=True) if node else None

    async def query_nodes(
        self, query: NodeQuery | Mapping[str, Any] | None = None
    ) -> list[Node]:
        """Return nodes matching every supplied filter, in creation order."""
        q = validate_input(NodeQuery, query)
        async with self._lock:
            if q.type is not None:
                candidates = self._graph.nodes_of_type(q.type)
            else:
                candidates = list(self._graph.nodes.values())
            matched = [n for n in candidates if q.matches(n)]
            page = _paginate(matched, q.offset, q.limit)
            return [n.model_copy(deep=True) for n in page]

    async def search_nodes(
        self,
        text: str,
        *,
        types: Iterable[str] | None = None,
        limit: int | None = None,
    ) -> list[Node]:
        """Case-insensitive label substring search, optionally by type."""
        q = validate_input(NodeQuery, {"label": text, "limit": limit})
        if isinstance(types, str):
            types = [types]
        wanted = set(types) if types is not None else None
        async with self._lock:
            matched = [
                n
                for n in self._graph.nodes.values()
                if (wanted is None or n.type in wanted) and q.matches(n)
            ]
            return [n.model_copy(deep=True) for n in _paginate(matched, 0, q.limit)]

    # -- Edges --

    async def create_edge(self, data: EdgeCreate | Mapping[str, Any]) -> Edge:
        """Create a directed edge between two existing nodes.

        Raises:
            GraphValidationError: malformed input.
            NodeReferenceError: an endpoint does not exist; nothing is stored.
        """
        spec = validate_input(EdgeCreate, data)
        async with self._lock:
            self._check_endpoints([spec])
            edge = self._build_edge(spec, datetime.now(UTC))
            self._graph.add_edge(edge)
            await self._persist("edges", lambda: self._graph.discard_edge(edge.id))
        logger.debug(
            "edge_created",
            extra={
                "edge.id": edge.id,
                "edge.type": edge.type,
                "edge.source_id": edge.source_id,
                "edge.target_id": edge.target_id,
            },
        )
        return edge.model_copy(deep=True)

    async def bulk_create_edges(
        self, items: Iterable[EdgeCreate | Mapping[str, Any]]
    ) -> list[Edge]:
        """Create several edges with a single flush. All or nothing."""
        specs = _validate_items(EdgeCreate, items)
        async with self._lock:
            self._check_endpoints(specs)
            now = datetime.now(UTC)
            edges: list[Edge] = []
            for spec in specs:
                edge = self._build_edge(spec, now)
                self._graph.add_edge(edge)
                edges.append(edge)

            def rollback() -> None:
                for e in edges:
                    self._graph.discard_edge(e.id)

            await self._persist("edges", rollback)
        logger.debug("edges_created", extra={"count": len(edges)})
        return [e.model_copy(deep=True) for e in edges]

    async def get_edge(self, edge_id: object) -> Edge | None:
        """Return the edge with ``edge_id``, or None. Never raises."""
        if not isinstance(edge_id, str):
            return None
        async with self._lock:
            edge = self._graph.edges.get(edge_id)
            return edge.model_copy(deep=True) if edge else None

    async def query_edges(
        self, query: EdgeQuery | Mapping[str, Any] | None = None
    ) -> list[Edge]:
        """Return edges matching every supplied filter, in creation order."""
        q = validate_input(EdgeQuery, query)
        async with self._lock:
            if q.source_id is not None:
                candidates = self._graph.get_outgoing(q.source_id)
            elif q.target_id is not None:
                candidates = self._graph.get_incoming(q.target_id)
            elif q.type is not None:
                candidates = self._graph.edges_of_type(q.type)
            else:
                candidates = list(self._graph.edges.values())
            matched = [e for e in candidates if q.matches(e)]
            page = _paginate(matched, q.offset, q.limit)
            return [e.model_copy(deep=True) for e in page]

    # -- Traversal --

    async def get_neighbors(
        self,
        node_id: object,
        direction: Direction | str = Direction.BOTH,
        *,
        edge_type: str | None = None,
    ) -> list[Neighbor]:
        """One-hop neighbors of a node, one entry per adjacent edge.

        ``"in"`` entries come before ``"out"`` entries when ``direction`` is
        ``"both"``. A self-loop is reported once per matching direction.
        Unknown nodes have no neighbors.
        """
        d = parse_direction(direction)
        if not isinstance(node_id, str):
            return []
        async with self._lock:
            if not self._graph.has_node(node_id):
                return []
            results: list[Neighbor] = []
            if d in (Direction.IN, Direction.BOTH):
                for edge in self._graph.get_incoming(node_id, edge_type):
                    results.append(self._neighbor(edge, node_id, "in"))
            if d in (Direction.OUT, Direction.BOTH):
                for edge in self._graph.get_outgoing(node_id, edge_type):
                    results.append(self._neighbor(edge, node_id, "out"))
            return results

    # -- Reporting --

    async def get_stats(self) -> GraphStats:
        async with self._lock:
            total_nodes = len(self._graph.nodes)
            total_edges = len(self._graph.edges)
            return GraphStats(
                total_nodes=total_nodes,
                total_edges=total_edges,
                nodes_by_type=self._graph.node_types(),
                edges_by_type=self._graph.edge_types(),
                avg_edges_per_node=total_edges / total_nodes if total_nodes else 0.0,
            )

    async def export_graph(
        self,
        fmt: export.ExportFormat | str,
        *,
        include_nodes: bool = True,
        include_edges: bool = True,
        node_types: Iterable[str] | None = None,
    ) -> str:
        """Render the graph as ``"json"``, ``"dot"`` or ``"csv"`` text.

        With ``node_types``, only nodes of those types are exported, and only
        edges whose endpoints are both exported.
        """
        export_format = export.parse_format(fmt)
        if isinstance(node_types, str):
            node_types = [node_types]
        wanted = set(node_types) if node_types is not None else None
        async with self._lock:
            kept = [
                n
                for n in self._graph.nodes.values()
                if wanted is None or n.type in wanted
            ]
            kept_ids = {n.id for n in kept}
            edges = [
                e
                for e in self._graph.edges.values()
                if wanted is None
                or (e.source_id in kept_ids and e.target_id in kept_ids)
            ]
            return export.render(
                export_format,
                kept if include_nodes else [],
                edges if include_edges else [],
            )


async def create_graph_store(config: GraphConfig | None = None) -> GraphStore:
    """Create a GraphStore, loading any records under ``config.storage_path``.

    Without a config (or with ``storage_path=None``) the store lives in memory.
    """
    if config is None or config.storage_path is None:
        logger.debug("graph_store_in_memory")
        return GraphStore()

    persistence = GraphPersistence(config.storage_path)
    raw_data = await persistence.load_raw()
    graph = hydrate_graph(raw_data)
    logger.info(
        "graph_loaded",
        extra={
            "file.path": str(config.storage_path),
            "node_count": len(graph.nodes),
            "edge_count": len(graph.edges),
        },
    )
    return GraphStore(graph, persistence)
