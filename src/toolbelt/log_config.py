"""Structured logging for the toolbelt helpers.

Every module obtains its logger through :func:`get_logger`, which routes
structlog events into the standard library logger of the same name. The
``toolbelt`` logger carries a ``NullHandler``, so the helpers stay silent
unless the host application configures ``logging`` itself or calls
:func:`configure_logging`.

Example:
    >>> from toolbelt.log_config import configure_logging
    >>> configure_logging(level="DEBUG", json_logs=False)
    >>> await parallel(tasks, limit=2)  # parallel_run_started ... on stderr
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any

import structlog

LIBRARY_LOGGER_NAME = "toolbelt"

logging.getLogger(LIBRARY_LOGGER_NAME).addHandler(logging.NullHandler())

# Handler installed by configure_logging, replaced on reconfiguration
_handler: logging.Handler | None = None


def configure_logging(
    level: str = "INFO",
    json_logs: bool = True,
    stream: IO[str] | None = None,
) -> None:
    """Render toolbelt events and send them to ``stream``.

    Only the ``toolbelt`` logger hierarchy is touched; the root logger and
    the host's own handlers are left alone. Records still propagate, so a
    host that already configured ``logging`` receives them as well.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, render JSON lines; otherwise use the console renderer
        stream: Destination for rendered lines (default: ``sys.stderr``)

    Raises:
        ValueError: If an invalid log level is provided
    """
    global _handler

    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        msg = f"Invalid log level: {level}"
        raise ValueError(msg)

    renderer: Any
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=False,
    )

    library_logger = logging.getLogger(LIBRARY_LOGGER_NAME)
    if _handler is not None:
        library_logger.removeHandler(_handler)
        _handler.close()
    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    library_logger.addHandler(_handler)
    library_logger.setLevel(numeric_level)


def reset_logging() -> None:
    """Undo :func:`configure_logging` and return to the silent default."""
    global _handler

    library_logger = logging.getLogger(LIBRARY_LOGGER_NAME)
    if _handler is not None:
        library_logger.removeHandler(_handler)
        _handler.close()
        _handler = None
    library_logger.setLevel(logging.NOTSET)
    structlog.reset_defaults()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger backed by ``logging.getLogger(name)``."""
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Attach ``values`` to every event logged inside the block.

    Tasks started inside the block inherit the values, since asyncio copies
    the current context into each new task.

    Example:
        >>> with log_context(run="parallel"):
        ...     await parallel(tasks)  # every event carries run="parallel"
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield
