"""Cooperative waiting primitives: sleep and timeout.

``timeout`` bounds how long the *caller* waits, not how long the work runs.
When the deadline passes the raced operation is left running in the
background; its eventual result or exception is collected and dropped so it
can never reach the caller (and asyncio does not complain about an
unretrieved exception).
"""

import asyncio
from collections.abc import Awaitable
from typing import Any

from toolbelt.log_config import get_logger

# Initialize logger
logger = get_logger(__name__)

MS_PER_SECOND = 1000

# Futures we stopped waiting on but that are still running. Holding a strong
# reference keeps them from being garbage-collected mid-flight.
_detached: set[asyncio.Future[Any]] = set()


class OperationTimeoutError(TimeoutError):
    """Raised when an operation does not settle within its deadline.

    Attributes:
        timeout_ms: The deadline that elapsed, in milliseconds
    """

    def __init__(self, message: str, timeout_ms: float):
        super().__init__(message)
        self.timeout_ms = timeout_ms


def _discard_outcome(future: asyncio.Future[Any]) -> None:
    _detached.discard(future)
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.debug(
            "detached_operation_failed",
            error=str(error),
            error_type=type(error).__name__,
        )


def detach(future: asyncio.Future[Any]) -> None:
    """Stop caring about ``future`` without cancelling it.

    The future keeps running; whatever it produces is discarded.
    """
    if future.done():
        _discard_outcome(future)
        return
    _detached.add(future)
    future.add_done_callback(_discard_outcome)


def detached_count() -> int:
    """Return how many abandoned operations are still running."""
    return len(_detached)


async def sleep(ms: float) -> None:
    """Suspend the current task for ``ms`` milliseconds.

    Non-positive values just yield control to the event loop once.
    """
    await asyncio.sleep(max(ms, 0) / MS_PER_SECOND)


async def timeout[T](
    operation: Awaitable[T],
    ms: float,
    message: str | None = None,
) -> T:
    """Wait for ``operation`` for at most ``ms`` milliseconds.

    Args:
        operation: Coroutine, task or future to wait on
        ms: Deadline in milliseconds (must be > 0)
        message: Error message used when the deadline elapses
            (default: ``"Operation timed out after {ms}ms"``)

    Returns:
        The operation's result if it finishes in time

    Raises:
        ValueError: If ``ms`` is not greater than 0
        OperationTimeoutError: If the deadline elapses first
        Exception: Whatever the operation itself raises, unchanged

    Example:
        >>> data = await timeout(fetch_report(), 5000, "report took too long")
    """
    if ms <= 0:
        if asyncio.iscoroutine(operation):
            operation.close()
        msg = "ms must be greater than 0"
        raise ValueError(msg)

    future = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({future}, timeout=ms / MS_PER_SECOND)
    except BaseException:
        detach(future)
        raise

    if future in done:
        return future.result()

    detach(future)
    error_msg = message if message is not None else f"Operation timed out after {ms}ms"
    logger.debug("operation_timed_out", timeout_ms=ms)
    raise OperationTimeoutError(error_msg, ms)
