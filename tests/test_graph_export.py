"""Tests for graph export renderers."""

import csv
import io
import json

import pytest

from kgstore.graph.errors import GraphValidationError
from kgstore.graph.export import CSV_HEADER, ExportFormat, parse_format, to_dot
from kgstore.graph.store import GraphStore
from kgstore.graph.types import Edge, Node


@pytest.fixture
async def populated(store: GraphStore) -> GraphStore:
    react = await store.create_node({"type": "Technology", "label": "React"})
    js = await store.create_node({"type": "Language", "label": "JavaScript"})
    ts = await store.create_node({"type": "Language", "label": "TypeScript"})
    await store.create_edge(
        {"source_id": react.id, "target_id": js.id, "type": "uses", "weight": 0.9}
    )
    await store.create_edge(
        {"source_id": ts.id, "target_id": js.id, "type": "compiles-to"}
    )
    return store


class TestParseFormat:
    def test_valid(self):
        assert parse_format("dot") is ExportFormat.DOT
        assert parse_format(ExportFormat.CSV) is ExportFormat.CSV

    def test_invalid(self):
        with pytest.raises(GraphValidationError, match="Unsupported export format"):
            parse_format("graphml")


class TestJsonExport:
    async def test_full_graph(self, populated: GraphStore):
        data = json.loads(await populated.export_graph("json"))
        assert [n["label"] for n in data["nodes"]] == [
            "React",
            "JavaScript",
            "TypeScript",
        ]
        assert [e["type"] for e in data["edges"]] == ["uses", "compiles-to"]
        assert data["edges"][0]["weight"] == 0.9
        assert "weight" not in data["edges"][1]

    async def test_node_type_filter_drops_dangling_edges(self, populated: GraphStore):
        data = json.loads(
            await populated.export_graph("json", node_types=["Language"])
        )
        assert {n["label"] for n in data["nodes"]} == {"JavaScript", "TypeScript"}
        assert [e["type"] for e in data["edges"]] == ["compiles-to"]

    async def test_exclude_sections(self, populated: GraphStore):
        data = json.loads(
            await populated.export_graph("json", include_nodes=False)
        )
        assert data["nodes"] == []
        assert len(data["edges"]) == 2

        data = json.loads(await populated.export_graph("json", include_edges=False))
        assert data["edges"] == []

    async def test_empty_graph(self, store: GraphStore):
        assert json.loads(await store.export_graph("json")) == {
            "nodes": [],
            "edges": [],
        }


class TestDotExport:
    async def test_structure(self, populated: GraphStore):
        text = await populated.export_graph(ExportFormat.DOT)
        assert text.startswith("digraph KnowledgeGraph {\n")
        assert text.endswith("}\n")
        assert 'label="React"' in text
        assert "weight=0.9" in text
        assert text.count(" -> ") == 2

    def test_quotes_are_escaped(self):
        node = Node(id="n-1", type="Quote", label='say "hi"\nbye')
        text = to_dot([node], [])
        assert 'label="say \\"hi\\"\\nbye"' in text

    def test_unweighted_edge_has_no_weight(self):
        edge = Edge(id="e-1", source_id="n-1", target_id="n-2", type="uses")
        assert "weight" not in to_dot([], [edge])


class TestCsvExport:
    async def test_rows(self, populated: GraphStore):
        rows = list(csv.reader(io.StringIO(await populated.export_graph("csv"))))

        assert rows[0] == CSV_HEADER
        kinds = [row[0] for row in rows[1:]]
        assert kinds == ["node", "node", "node", "edge", "edge"]
        weighted, unweighted = rows[4], rows[5]
        assert weighted[2] == "uses"
        assert weighted[6] == "0.9"
        assert unweighted[6] == ""

    async def test_labels_with_commas(self, store: GraphStore):
        await store.create_node({"type": "Book", "label": "Eats, Shoots & Leaves"})
        rows = list(csv.reader(io.StringIO(await store.export_graph("csv"))))
        assert rows[1][3] == "Eats, Shoots & Leaves"
