"""Configuration models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class ConfigError(Exception):
    """Configuration error."""

    pass


class GraphConfig(BaseModel):
    """Root configuration model.

    ``storage_path`` is the directory where records persist. ``None`` keeps
    the graph in memory only.
    """

    model_config = ConfigDict(extra="forbid")

    storage_path: Path | None = None
    log_level: LogLevel | None = None  # None = KGSTORE_LOG_LEVEL or INFO

    @field_validator("storage_path")
    @classmethod
    def _expand_storage_path(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v
