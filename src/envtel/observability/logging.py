"""Structured logging configuration using structlog.

``configure_logging()`` sets up either coloured console output for bench work
or newline-delimited JSON for a node whose log is shipped off-board.
"""

from __future__ import annotations

import logging
import sys
from typing import Literal

import structlog


def configure_logging(
    level: str = "INFO",
    fmt: Literal["console", "json"] = "console",
    include_caller: bool = False,
) -> None:
    """Configure the root logger and structlog processors.

    Parameters
    ----------
    level:
        Standard log level name, e.g. ``"DEBUG"``, ``"INFO"``, ``"WARNING"``.
    fmt:
        ``"console"`` for human-readable output, ``"json"`` for
        machine-readable newline-delimited JSON.
    include_caller:
        If True, attach ``module`` and ``lineno`` to every event.
    """
    numeric_level = logging.getLevelName(level.upper())

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if include_caller:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )

    processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
    )


def bind_node(node_name: str) -> None:
    """Attach ``node`` to every event logged from this context."""
    structlog.contextvars.bind_contextvars(node=node_name)


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a bound structlog logger for the given module name."""
    return structlog.get_logger(name)
