"""structlog configuration for applications embedding commandkit.

Pipeline modules log through stdlib ``logging``; this routes those
records (and any ``structlog.get_logger`` calls) through one structlog
formatter. While a command runs, its name is bound as the ``command``
context variable, so every line logged during the run carries it.

Two output modes:
- Human (default): console renderer on the chosen stream
- JSON (log_json=True): one JSON object per line
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

# Libraries whose DEBUG chatter stays hidden even in verbose mode.
QUIET_LOGGERS = ("sqlalchemy", "asyncio")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Install a single structlog-formatted handler on the root logger.

    Safe to call repeatedly; earlier root handlers are replaced.

    Args:
        verbose: DEBUG for ``commandkit`` loggers (pipeline steps, halts,
            spans). When False, only WARNING+.
        log_json: JSON renderer instead of the console renderer.
        stream: Output stream, default ``sys.stderr``.
    """
    stream = stream if stream is not None else sys.stderr
    processors = _shared_processors()

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("commandkit").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
