"""Fixed-delay retry for async tasks.

A task is invoked up to ``attempts`` times in total. Between attempts the
caller may ask for a constant pause; there is no backoff growth and no
jitter. When every attempt fails, the exception from the final attempt is
re-raised as-is so callers can still match on its type.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from toolbelt.log_config import get_logger
from toolbelt.tasks.timing import sleep

if TYPE_CHECKING:
    from toolbelt.config import RetrySettings

# Initialize logger
logger = get_logger(__name__)


def _task_name(task: Callable[..., object]) -> str:
    return getattr(task, "__qualname__", None) or repr(task)


async def retry[T](
    task_factory: Callable[[], Awaitable[T]],
    attempts: int,
    delay_ms: float = 0,
) -> T:
    """Invoke ``task_factory`` until it succeeds or the attempt budget runs out.

    Args:
        task_factory: Zero-argument callable returning an awaitable
        attempts: Total number of attempts, including the first (must be > 0)
        delay_ms: Constant pause between attempts in milliseconds (default: 0)

    Returns:
        Result of the first successful attempt

    Raises:
        ValueError: If ``attempts`` is not greater than 0
        Exception: The exception from the last attempt if all attempts fail

    Example:
        >>> async def fetch_status():
        ...     return await get_json("https://example.com/status")
        >>>
        >>> status = await retry(fetch_status, attempts=3, delay_ms=250)
    """
    if attempts <= 0:
        msg = "attempts must be greater than 0"
        raise ValueError(msg)

    task = _task_name(task_factory)
    last_error: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            result = await task_factory()
        except Exception as e:
            last_error = e

            logger.warning(
                "retry_attempt_failed",
                task=task,
                attempt=attempt,
                max_attempts=attempts,
                error=str(e),
                error_type=type(e).__name__,
            )

            if attempt < attempts and delay_ms > 0:
                logger.debug(
                    "retry_delay",
                    task=task,
                    attempt=attempt,
                    delay_ms=delay_ms,
                    next_attempt=attempt + 1,
                )
                await sleep(delay_ms)
        else:
            if attempt > 1:
                logger.info("retry_succeeded", task=task, total_attempts=attempt)
            return result

    logger.error(
        "retry_exhausted",
        task=task,
        total_attempts=attempts,
        final_error=str(last_error),
    )

    # Unreachable in practice: every failed attempt records its error
    if last_error is not None:
        raise last_error
    error_msg = "retry failed without an explicit error"
    raise RuntimeError(error_msg)


class RetryConfig:
    """Retry budget shared by the tasks of a :class:`~toolbelt.tasks.runner.TaskRunner`.

    Attributes:
        attempts: Total attempts per task, including the first
        delay_ms: Constant pause between attempts in milliseconds
        enabled: Whether tasks are wrapped in :func:`retry` at all
    """

    def __init__(
        self,
        attempts: int = 3,
        delay_ms: float = 0,
        enabled: bool = True,
    ):
        """Initialize retry configuration.

        Args:
            attempts: Total attempts per task (default: 3)
            delay_ms: Pause between attempts in milliseconds (default: 0)
            enabled: Wrap tasks in retry (default: True)

        Raises:
            ValueError: If parameters are invalid
        """
        if attempts <= 0:
            msg = "attempts must be greater than 0"
            raise ValueError(msg)
        if delay_ms < 0:
            msg = "delay_ms must be non-negative"
            raise ValueError(msg)

        self.attempts = attempts
        self.delay_ms = delay_ms
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings: "RetrySettings") -> "RetryConfig":
        """Create a RetryConfig from the ``retry`` section of the configuration.

        A budget of a single attempt means there is nothing to retry, so the
        resulting config is disabled.
        """
        return cls(
            attempts=settings.attempts,
            delay_ms=settings.delay_ms,
            enabled=settings.attempts > 1,
        )

    def wrap[T](self, task: Callable[[], Awaitable[T]]) -> Callable[[], Awaitable[T]]:
        """Return a task that runs ``task`` under this retry budget."""
        if not self.enabled:
            return task

        async def retrying() -> T:
            return await retry(task, self.attempts, self.delay_ms)

        retrying.__qualname__ = _task_name(task)
        return retrying

    def __repr__(self) -> str:
        return (
            f"RetryConfig(attempts={self.attempts}, delay_ms={self.delay_ms}, "
            f"enabled={self.enabled})"
        )
