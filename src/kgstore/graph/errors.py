"""Exceptions raised by the graph store.

Lookups that find nothing are not errors: they return ``None`` or an
empty list. Everything else the store rejects derives from
``GraphStoreError``. File system failures (``OSError``) are not wrapped.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class GraphStoreError(Exception):
    """Base class for graph store failures."""


class GraphValidationError(GraphStoreError, ValueError):
    """Input was missing a required field or had the wrong shape."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class NodeReferenceError(GraphStoreError):
    """An edge endpoint does not resolve to an existing node."""

    def __init__(self, missing_ids: list[str]):
        self.missing_ids = missing_ids
        super().__init__(f"Unknown node id(s): {', '.join(missing_ids)}")


class StorageError(GraphStoreError):
    """Persisted graph data could not be read back."""

    def __init__(self, message: str, path: Path, line_no: int | None = None):
        self.path = path
        self.line_no = line_no
        location = f"{path}:{line_no}" if line_no is not None else str(path)
        super().__init__(f"{message} ({location})")
