"""Render graph records as JSON, Graphviz DOT or CSV text."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from enum import Enum

from kgstore.graph.errors import GraphValidationError
from kgstore.graph.types import Edge, Node


class ExportFormat(Enum):
    JSON = "json"
    DOT = "dot"
    CSV = "csv"


CSV_HEADER = ["kind", "id", "type", "label", "source_id", "target_id", "weight"]


def parse_format(value: ExportFormat | str) -> ExportFormat:
    if isinstance(value, ExportFormat):
        return value
    try:
        return ExportFormat(value)
    except ValueError:
        raise GraphValidationError(
            f"Unsupported export format {value!r}; expected one of "
            + ", ".join(f.value for f in ExportFormat)
        ) from None


def render(fmt: ExportFormat, nodes: Iterable[Node], edges: Iterable[Edge]) -> str:
    if fmt is ExportFormat.JSON:
        return to_json(nodes, edges)
    if fmt is ExportFormat.DOT:
        return to_dot(nodes, edges)
    return to_csv(nodes, edges)


def to_json(nodes: Iterable[Node], edges: Iterable[Edge]) -> str:
    payload = {
        "nodes": [n.to_dict() for n in nodes],
        "edges": [e.to_dict() for e in edges],
    }
    return json.dumps(payload, indent=2)


def _dot_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def to_dot(nodes: Iterable[Node], edges: Iterable[Edge]) -> str:
    lines = ["digraph KnowledgeGraph {"]
    for node in nodes:
        lines.append(
            f"  {_dot_quote(node.id)} [label={_dot_quote(node.label)}"
            f" type={_dot_quote(node.type)}];"
        )
    for edge in edges:
        attrs = f"label={_dot_quote(edge.type)}"
        if edge.weight is not None:
            attrs += f" weight={edge.weight!r}"
        lines.append(
            f"  {_dot_quote(edge.source_id)} -> {_dot_quote(edge.target_id)} [{attrs}];"
        )
    lines.append("}")
    return "\n".join(lines) + "\n"


def to_csv(nodes: Iterable[Node], edges: Iterable[Edge]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for node in nodes:
        writer.writerow(["node", node.id, node.type, node.label, "", "", ""])
    for edge in edges:
        weight = "" if edge.weight is None else repr(edge.weight)
        writer.writerow(
            ["edge", edge.id, edge.type, "", edge.source_id, edge.target_id, weight]
        )
    return buf.getvalue()
