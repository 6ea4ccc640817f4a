"""Core in-memory knowledge graph data structure.

All queries run against in-memory dicts and adjacency lists.
Persistence is handled separately by GraphPersistence.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from kgstore.graph.types import Edge, Node


@dataclass
class KnowledgeGraph:
    """In-memory knowledge graph. All queries run against this.

    Dicts preserve insertion order, so scans return records in creation order.
    """

    nodes: dict[str, Node] = field(default_factory=dict)
    edges: dict[str, Edge] = field(default_factory=dict)

    # Adjacency and type indexes (lists of ids, in insertion order)
    _outgoing: defaultdict[str, list[str]] = field(
        default_factory=lambda: defaultdict(list)
    )
    _incoming: defaultdict[str, list[str]] = field(
        default_factory=lambda: defaultdict(list)
    )
    _nodes_by_type: defaultdict[str, list[str]] = field(
        default_factory=lambda: defaultdict(list)
    )
    _edges_by_type: defaultdict[str, list[str]] = field(
        default_factory=lambda: defaultdict(list)
    )

    # -- Node operations --

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def get_node(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def add_node(self, node: Node) -> None:
        """Add a node and index it by type.

        Re-adding an existing id replaces the record without duplicating
        its index entry.
        """
        old = self.nodes.get(node.id)
        if old is not None:
            self._remove_from_list(self._nodes_by_type, old.type, node.id)
        self.nodes[node.id] = node
        self._nodes_by_type[node.type].append(node.id)

    def discard_node(self, node_id: str) -> None:
        """Drop a node and its index entry.

        Only used to roll back a node that was never persisted; callers must
        ensure no edge references it.
        """
        node = self.nodes.pop(node_id, None)
        if node is None:
            return
        self._remove_from_list(self._nodes_by_type, node.type, node_id)
        if not self._nodes_by_type.get(node.type):
            self._nodes_by_type.pop(node.type, None)

    def nodes_of_type(self, node_type: str) -> list[Node]:
        """O(k) lookup of all nodes with a given type."""
        return [self.nodes[nid] for nid in self._nodes_by_type.get(node_type, [])]

    def node_types(self) -> dict[str, int]:
        return {t: len(ids) for t, ids in self._nodes_by_type.items() if ids}

    # -- Edge operations --

    def add_edge(self, edge: Edge) -> None:
        """Add edge and update adjacency indexes.

        If an edge with the same ID already exists, the old adjacency
        entries are removed first to prevent duplicates in the index lists.
        """
        old = self.edges.get(edge.id)
        if old is not None:
            self._remove_from_index(old)

        self.edges[edge.id] = edge
        self._outgoing[edge.source_id].append(edge.id)
        self._incoming[edge.target_id].append(edge.id)
        self._edges_by_type[edge.type].append(edge.id)

    def discard_edge(self, edge_id: str) -> None:
        """Hard-remove edge from all indexes (rollback of unpersisted edges)."""
        edge = self.edges.pop(edge_id, None)
        if not edge:
            return
        self._remove_from_index(edge)

    def _remove_from_index(self, edge: Edge) -> None:
        """Remove an edge from adjacency indexes (but not from self.edges)."""
        self._remove_from_list(self._outgoing, edge.source_id, edge.id)
        self._remove_from_list(self._incoming, edge.target_id, edge.id)
        self._remove_from_list(self._edges_by_type, edge.type, edge.id)

    @staticmethod
    def _remove_from_list(
        index: defaultdict[str, list[str]], key: str, item_id: str
    ) -> None:
        ids = index.get(key)
        if not ids:
            return
        try:
            ids.remove(item_id)
        except ValueError:
            pass
        if not ids:
            del index[key]

    def get_outgoing(
        self,
        node_id: str,
        edge_type: str | None = None,
    ) -> list[Edge]:
        """Get outgoing edges, optionally filtered by type."""
        return self._collect(self._outgoing.get(node_id, []), edge_type)

    def get_incoming(
        self,
        node_id: str,
        edge_type: str | None = None,
    ) -> list[Edge]:
        """Get incoming edges, optionally filtered by type."""
        return self._collect(self._incoming.get(node_id, []), edge_type)

    def _collect(self, edge_ids: list[str], edge_type: str | None) -> list[Edge]:
        results: list[Edge] = []
        for eid in edge_ids:
            edge = self.edges.get(eid)
            if not edge:
                continue
            if edge_type is not None and edge.type != edge_type:
                continue
            results.append(edge)
        return results

    def edges_of_type(self, edge_type: str) -> list[Edge]:
        return self._collect(self._edges_by_type.get(edge_type, []), None)

    def edge_types(self) -> dict[str, int]:
        return {t: len(ids) for t, ids in self._edges_by_type.items() if ids}
