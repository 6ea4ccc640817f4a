"""Graph node and edge types.

Stored records (``Node``, ``Edge``) are frozen pydantic models. Inputs
(``NodeCreate``, ``EdgeCreate``) and filters (``NodeQuery``, ``EdgeQuery``)
are validated strictly so that bad payloads fail before the store is touched.

All models accept both snake_case and camelCase field names, so tool-call
payloads such as ``{"sourceId": ..., "targetId": ...}`` validate directly.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Literal, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from kgstore.graph.errors import GraphValidationError

# Closed recursive union: str, int, float, bool, None, lists and str-keyed dicts
PropertyValue = JsonValue
Properties = dict[str, JsonValue]

_M = TypeVar("_M", bound=BaseModel)


class Direction(Enum):
    """Which side of an edge a traversal follows."""

    OUT = "out"  # node is the edge source
    IN = "in"  # node is the edge target
    BOTH = "both"


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    """Drop top-level None fields; nested property values are left alone."""
    return {k: v for k, v in d.items() if v is not None}


def _json_equal(a: JsonValue, b: JsonValue) -> bool:
    """Equality that also requires the same JSON type, so ``1`` never matches ``True``."""
    if type(a) is not type(b):
        return False
    if isinstance(a, list):
        return len(a) == len(b) and all(_json_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(_json_equal(a[k], b[k]) for k in a)
    return a == b


class Node(BaseModel):
    """A typed, labeled entity."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str
    type: str  # "Technology", "Language", ...
    label: str
    properties: Properties | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(self.model_dump(mode="json"))

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Node:
        return cls.model_validate(d)


class Edge(BaseModel):
    """Typed, directed edge between two nodes.

    ``weight`` is optional. ``None`` means no weight was supplied and is
    kept distinct from ``0.0`` through serialization.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str
    source_id: str
    target_id: str
    type: str  # "uses", "depends-on", ...
    weight: float | None = None
    properties: Properties | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(self.model_dump(mode="json"))

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Edge:
        return cls.model_validate(d)

    def other_end(self, node_id: str) -> str:
        """Return the endpoint opposite ``node_id``."""
        return self.target_id if self.source_id == node_id else self.source_id


_INPUT_CONFIG = ConfigDict(
    strict=True,
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


class NodeCreate(BaseModel):
    """Caller-supplied fields for a new node."""

    model_config = _INPUT_CONFIG

    type: str = Field(min_length=1)
    label: str = Field(min_length=1)
    properties: Properties | None = None


class EdgeCreate(BaseModel):
    """Caller-supplied fields for a new edge."""

    model_config = _INPUT_CONFIG

    source_id: str = Field(min_length=1)
    target_id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    weight: float | None = Field(default=None, allow_inf_nan=False)
    properties: Properties | None = None


class NodeQuery(BaseModel):
    """Conjunctive node filter. Unset fields match everything."""

    model_config = _INPUT_CONFIG

    type: str | None = None
    label: str | None = None  # case-insensitive substring
    properties: Properties | None = None  # every key/value must be equal and same-typed
    limit: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)

    def matches(self, node: Node) -> bool:
        if self.type is not None and node.type != self.type:
            return False
        if self.label is not None and self.label.lower() not in node.label.lower():
            return False
        if self.properties:
            props = node.properties or {}
            for key, value in self.properties.items():
                if key not in props or not _json_equal(props[key], value):
                    return False
        return True


class EdgeQuery(BaseModel):
    """Conjunctive edge filter. Unset fields match everything."""

    model_config = _INPUT_CONFIG

    source_id: str | None = None
    target_id: str | None = None
    type: str | None = None
    limit: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)

    def matches(self, edge: Edge) -> bool:
        if self.source_id is not None and edge.source_id != self.source_id:
            return False
        if self.target_id is not None and edge.target_id != self.target_id:
            return False
        if self.type is not None and edge.type != self.type:
            return False
        return True


class Neighbor(BaseModel):
    """One edge adjacent to a node, paired with the node at its other end."""

    model_config = ConfigDict(frozen=True)

    node: Node
    edge: Edge
    direction: Literal["out", "in"]


class GraphStats(BaseModel):
    """Record counts for the whole graph."""

    total_nodes: int = 0
    total_edges: int = 0
    nodes_by_type: dict[str, int] = Field(default_factory=dict)
    edges_by_type: dict[str, int] = Field(default_factory=dict)
    avg_edges_per_node: float = 0.0


def validate_input(model: type[_M], data: _M | Mapping[str, Any] | None) -> _M:
    """Coerce caller input into ``model``, raising GraphValidationError.

    Model instances pass through; mappings are validated; ``None`` yields
    the model's defaults (only meaningful for filters).
    """
    if isinstance(data, model):
        return data
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise GraphValidationError(
            f"{model.__name__} expects a mapping, got {type(data).__name__}"
        )
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise GraphValidationError(
            f"Invalid {model.__name__}: {e.error_count()} error(s)",
            errors=e.errors(include_url=False),
        ) from e


def parse_direction(value: Direction | str) -> Direction:
    if isinstance(value, Direction):
        return value
    try:
        return Direction(value)
    except ValueError:
        raise GraphValidationError(
            f"Invalid direction {value!r}; expected one of "
            + ", ".join(d.value for d in Direction)
        ) from None
