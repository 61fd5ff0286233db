"""Structured logging for the explorer and CLI.

structlog renders through a stdlib ``ProcessorFormatter`` so records from
httpx and websockets share the same format as our own events. Output goes
to stderr, leaving stdout to the CLI's tables and CSV.

Two renderers:
- "json": one object per line, for piping into log tooling
- "console": aligned key=value lines, colored only on a terminal

The correlation ID lives in structlog's contextvars. Each symbol selection
binds a fresh one, so the fetch and indicator events it triggers (including
those from tasks it spawns) share an ID.
"""

from __future__ import annotations

import logging
import sys
import uuid

import structlog

_CORRELATION_KEY = "correlation_id"

# Third-party loggers that emit a line per request or frame at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "websockets")


def set_correlation_id(cid: str) -> None:
    """Bind ``cid`` for the current context. An empty string unbinds it."""
    if cid:
        structlog.contextvars.bind_contextvars(**{_CORRELATION_KEY: cid})
    else:
        structlog.contextvars.unbind_contextvars(_CORRELATION_KEY)


def get_correlation_id() -> str:
    value = structlog.contextvars.get_contextvars().get(_CORRELATION_KEY, "")
    return str(value)


def new_correlation_id(prefix: str = "sel") -> str:
    """Generate, bind and return a fresh correlation ID."""
    cid = f"{prefix}-{uuid.uuid4().hex[:12]}"
    set_correlation_id(cid)
    return cid


def _pre_chain() -> list[structlog.types.Processor]:
    # Runs for structlog events and for foreign stdlib records alike
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(level: str = "INFO", log_format: str = "console") -> None:
    """Route structlog and stdlib logging to one stderr handler.

    Safe to call repeatedly; each call replaces the root handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" or "console".
    """
    numeric_level = logging.getLevelName(level.upper())

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Module-level loggers are created at import, before this runs
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, numeric_level))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named structlog logger."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
