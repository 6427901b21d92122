"""Logging configuration using structlog.

Configures structlog on top of the stdlib ``logging`` module and offers a
small helper for binding per-task context (worker name, tick number) so
that every line emitted inside a background iteration carries it.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog import contextvars as structlog_contextvars


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog for structured logging.

    :param log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    :param json_output: Render JSON lines; console rendering otherwise (debug)
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog_contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def bound_log_context(**values: Any) -> Iterator[None]:
    """Bind structlog context variables for the duration of a block.

    Only the keys bound here are removed on exit, so nested blocks keep
    the outer context intact.

    :param values: Key/value pairs to attach to every log line in the block
    """
    tokens = structlog_contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog_contextvars.reset_contextvars(**tokens)
