"""JSONL load/save for KnowledgeGraph.

Nodes and edges are stored in ``nodes.jsonl`` and ``edges.jsonl``.
Atomic writes use tempfile + fsync + os.replace().
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from kgstore.graph.errors import StorageError
from kgstore.graph.graph import KnowledgeGraph
from kgstore.graph.types import Edge, Node

logger = logging.getLogger(__name__)

COLLECTIONS = ("nodes", "edges")


class GraphPersistence:
    """Load/save KnowledgeGraph to JSONL files.

    Use ``mark_dirty("nodes", "edges")`` + ``await flush(graph)``
    to write dirty collections to disk at the end of a logical operation.
    """

    def __init__(self, graph_dir: Path) -> None:
        self._dir = graph_dir
        self._dirty: set[str] = set()

    @property
    def graph_dir(self) -> Path:
        return self._dir

    @property
    def state_path(self) -> Path:
        """Path to graph state metadata."""
        return self._dir / "state.json"

    @property
    def dirty(self) -> frozenset[str]:
        return frozenset(self._dirty)

    def mark_dirty(self, *collections: str) -> None:
        """Mark collections as needing persistence.

        Valid names: "nodes", "edges".
        Call ``flush()`` to write all dirty collections to disk.
        """
        invalid = set(collections) - set(COLLECTIONS)
        if invalid:
            raise ValueError(
                f"Invalid collection names: {invalid}. Valid: {sorted(COLLECTIONS)}"
            )
        self._dirty.update(collections)

    async def flush(self, graph: KnowledgeGraph) -> None:
        """Write all dirty collections to disk, then clear dirty set.

        Snapshots data on the event-loop thread before handing raw records
        to a worker thread for I/O.
        """
        if not self._dirty:
            return
        dirty = self._dirty.copy()
        self._dirty.clear()
        try:
            snapshot = _snapshot_dirty(graph, dirty)
            state = _state_fields(graph)
            await asyncio.to_thread(_write_snapshot, self._dir, snapshot)
            await asyncio.to_thread(_update_state_sync, self.state_path, state)
        except Exception:
            # Preserve dirty collections so a later flush can retry safely.
            self._dirty.update(dirty)
            raise

    async def load_raw(self) -> dict[str, Any]:
        """Load raw JSONL data from disk.

        Returns a dict with keys ``raw_nodes`` and ``raw_edges``, each a list
        of ``(line_no, record)`` pairs, plus the ``nodes_path`` and
        ``edges_path`` they came from. Hydration is the caller's job.
        """
        return await asyncio.to_thread(_load_raw_jsonl, self._dir)

    async def load_state(self) -> dict[str, Any]:
        """Load graph state metadata."""
        return await asyncio.to_thread(_load_state_sync, self.state_path)


def _snapshot_dirty(graph: KnowledgeGraph, dirty: set[str]) -> dict[str, list[dict]]:
    """Snapshot dirty collections into raw dicts (must run on event-loop thread).

    This iterates the graph's in-memory dicts while no other coroutine can
    mutate them, producing plain lists that are safe to hand to a worker thread.
    """
    snapshot: dict[str, list[dict]] = {}
    if "nodes" in dirty:
        snapshot["nodes"] = [n.to_dict() for n in graph.nodes.values()]
    if "edges" in dirty:
        snapshot["edges"] = [e.to_dict() for e in graph.edges.values()]
    return snapshot


def _state_fields(graph: KnowledgeGraph) -> dict[str, Any]:
    return {
        "graph_commit_id": f"g-{uuid.uuid4().hex}",
        "node_count": len(graph.nodes),
        "edge_count": len(graph.edges),
    }


def _write_snapshot(graph_dir: Path, snapshot: dict[str, list[dict]]) -> None:
    """Write pre-serialized snapshot to disk (runs in worker thread)."""
    graph_dir.mkdir(parents=True, exist_ok=True)
    for collection, records in snapshot.items():
        _write_jsonl_atomic(graph_dir / f"{collection}.jsonl", records)


def _load_raw_jsonl(graph_dir: Path) -> dict[str, Any]:
    """Read all JSONL files from disk synchronously (runs in thread)."""
    raw: dict[str, Any] = {}
    for collection in COLLECTIONS:
        path = graph_dir / f"{collection}.jsonl"
        raw[f"raw_{collection}"] = _read_jsonl(path) if path.exists() else []
        raw[f"{collection}_path"] = path
    return raw


def _load_state_sync(path: Path) -> dict[str, Any]:
    """Load state metadata (synchronous)."""
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text())
    except json.JSONDecodeError:
        # state.json is advisory; the JSONL files are the source of truth
        logger.warning("state_metadata_read_failed", extra={"file.path": str(path)})
        return {}


def _update_state_sync(path: Path, fields: dict[str, Any]) -> None:
    """Merge-write state metadata atomically.

    Runs after the JSONL files are already replaced, so a failure here is
    logged rather than raised: the records themselves are durable.
    """
    current = _load_state_sync(path)
    merged = {**current, **fields}
    try:
        _write_json_atomic(path, merged)
    except OSError:
        logger.warning(
            "state_metadata_write_failed",
            extra={"file.path": str(path)},
            exc_info=True,
        )


def _read_jsonl(path: Path) -> list[tuple[int, dict]]:
    """Read JSONL file, skipping blank lines.

    A line that is not a JSON object raises StorageError.
    """
    results: list[tuple[int, dict]] = []
    with path.open(encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise StorageError("Corrupt JSONL line", path, line_no) from e
            if not isinstance(record, dict):
                raise StorageError("JSONL line is not an object", path, line_no)
            results.append((line_no, record))
    return results


def _write_jsonl_atomic(path: Path, records: list[dict]) -> None:
    """Write JSONL atomically via tempfile + fsync + os.replace()."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(record, separators=(",", ":")))
                f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        Path(tmp).replace(path)
    except BaseException:
        try:
            Path(tmp).unlink()
        except OSError:
            pass
        raise


def _write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write JSON atomically via tempfile + fsync + os.replace()."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json.dumps(data, separators=(",", ":")))
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        Path(tmp).replace(path)
    except BaseException:
        try:
            Path(tmp).unlink()
        except OSError:
            pass
        raise


def hydrate_graph(raw_data: dict[str, Any]) -> KnowledgeGraph:
    """Build a KnowledgeGraph from raw JSONL records.

    Records that fail model validation, duplicate ids and edges pointing at
    unknown nodes raise StorageError; nothing is skipped.
    """
    graph = KnowledgeGraph()
    nodes_path = raw_data.get("nodes_path", Path("nodes.jsonl"))
    edges_path = raw_data.get("edges_path", Path("edges.jsonl"))

    for line_no, d in raw_data["raw_nodes"]:
        try:
            node = Node.from_dict(d)
        except ValidationError as e:
            raise StorageError("Invalid node record", nodes_path, line_no) from e
        if graph.has_node(node.id):
            raise StorageError(f"Duplicate node id {node.id}", nodes_path, line_no)
        graph.add_node(node)

    for line_no, d in raw_data["raw_edges"]:
        try:
            edge = Edge.from_dict(d)
        except ValidationError as e:
            raise StorageError("Invalid edge record", edges_path, line_no) from e
        if edge.id in graph.edges:
            raise StorageError(f"Duplicate edge id {edge.id}", edges_path, line_no)
        if not graph.has_node(edge.source_id) or not graph.has_node(edge.target_id):
            raise StorageError(
                f"Edge {edge.id} references an unknown node", edges_path, line_no
            )
        graph.add_edge(edge)

    return graph
