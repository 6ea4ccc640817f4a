"""Centralized logging configuration for kgstore.

kgstore is a library: modules only create loggers via
``logging.getLogger(__name__)`` and never install handlers themselves.
Host applications that want kgstore's house format call
``configure_logging()`` once at startup.

Logging Levels:
- DEBUG: Per-record events (node_created, edge_created)
- INFO: Store lifecycle (graph_loaded), rejected edges
- WARNING: Flush failures before they propagate, unreadable state metadata
"""

import logging
import os

from kgstore.config.models import GraphConfig

ENV_VAR = "KGSTORE_LOG_LEVEL"
VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ComponentFormatter(logging.Formatter):
    """Formatter that extracts component name from logger path.

    Converts full module paths to short component names:
    - kgstore.graph.store -> graph
    - kgstore.config.loader -> config
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = record.name.split(".")
        if len(parts) >= 2 and parts[0] == "kgstore":
            record.component = parts[1]
        else:
            record.component = parts[0]
        return super().format(record)


def resolve_level(level: str | None = None) -> str:
    """Pick the log level: explicit argument, then KGSTORE_LOG_LEVEL, then INFO."""
    if level is None:
        level = os.environ.get(ENV_VAR, "INFO")
    level = level.upper()
    if level not in VALID_LEVELS:
        level = "INFO"
    return level


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    config: GraphConfig | None = None,
) -> None:
    """Configure logging for kgstore.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). If None, uses
            ``config.log_level``, then the KGSTORE_LOG_LEVEL env var, then INFO.
        use_rich: Use Rich handler for colorful console output.
        config: Loaded configuration, consulted when ``level`` is None.
    """
    if level is None and config is not None:
        level = config.log_level
    log_level = getattr(logging, resolve_level(level))

    if use_rich:
        from rich.logging import RichHandler

        handler: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    logging.basicConfig(
        level=log_level,
        handlers=[handler],
        force=True,
    )
