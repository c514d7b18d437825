"""Sequential and bounded-concurrency task execution.

A *task* is a zero-argument callable returning an awaitable. The helpers here
never inspect tasks beyond their position in the input, and always return
results in input order.

``parallel`` is a small dispatcher loop: it keeps at most ``limit`` tasks in
flight, refilling free slots with the lowest-index task that has not started
yet. It fails fast: the first observed exception is re-raised unchanged while
siblings already in flight are left to finish in the background with their
outcomes discarded. No new tasks are started after a failure.
"""

import asyncio
import itertools
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from toolbelt.log_config import get_logger, log_context
from toolbelt.tasks.retry import RetryConfig
from toolbelt.tasks.timing import detach

if TYPE_CHECKING:
    from toolbelt.config import ToolbeltConfig

# Initialize logger
logger = get_logger(__name__)

type Task[T] = Callable[[], Awaitable[T]]


def _validate_limit(limit: float | None) -> None:
    if limit is not None and limit <= 0:
        msg = "limit must be greater than 0"
        raise ValueError(msg)


async def sequence[T](tasks: Iterable[Task[T]]) -> list[T]:
    """Run tasks one after another.

    Each task is awaited before the next one is invoked. The first exception
    propagates unchanged and the remaining tasks are never started.

    Args:
        tasks: Tasks to run, in order

    Returns:
        Results in the same order as ``tasks``
    """
    results: list[T] = []
    for task in tasks:
        results.append(await task())
    return results


async def parallel[T](tasks: Sequence[Task[T]], limit: float | None = None) -> list[T]:
    """Run tasks concurrently with at most ``limit`` in flight.

    Args:
        tasks: Tasks to run
        limit: Concurrency ceiling; ``None`` (or ``math.inf``) means unbounded

    Returns:
        Results index-aligned with ``tasks``, whatever order they finished in

    Raises:
        ValueError: If ``limit`` is not greater than 0
        Exception: The first exception raised by a task

    Example:
        >>> urls = ["https://example.com/a", "https://example.com/b"]
        >>> pages = await parallel([lambda u=u: get_json(u) for u in urls], limit=2)
    """
    _validate_limit(limit)

    tasks = list(tasks)
    total = len(tasks)
    results: list[Any] = [None] * total
    if not total:
        return results

    ceiling = total if limit is None else min(limit, total)
    in_flight: dict[asyncio.Future[T], int] = {}
    next_index = 0

    logger.debug("parallel_run_started", total_tasks=total, limit=limit)

    def fill_slots() -> None:
        nonlocal next_index
        while next_index < total and len(in_flight) < ceiling:
            index = next_index
            next_index += 1
            in_flight[asyncio.ensure_future(tasks[index]())] = index

    try:
        fill_slots()
        while in_flight:
            done, _ = await asyncio.wait(in_flight.keys(), return_when=asyncio.FIRST_COMPLETED)
            for future in sorted(done, key=in_flight.__getitem__):
                index = in_flight.pop(future)
                try:
                    results[index] = future.result()
                except Exception as e:
                    logger.debug(
                        "parallel_task_failed",
                        index=index,
                        in_flight=len(in_flight),
                        not_started=total - next_index,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise
            fill_slots()
    finally:
        # Only non-empty when bailing out early; leave stragglers running.
        for future in in_flight:
            detach(future)

    logger.debug("parallel_run_completed", total_tasks=total)
    return results


def batch[T](items: Iterable[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive chunks of ``size`` elements.

    The last chunk is shorter when the item count is not a multiple of
    ``size``.

    Raises:
        ValueError: If ``size`` is not greater than 0
    """
    if size <= 0:
        msg = "size must be greater than 0"
        raise ValueError(msg)

    items = list(items)
    return [items[start : start + size] for start in range(0, len(items), size)]


class TaskRunner:
    """Runs groups of tasks with a default concurrency ceiling and retry budget.

    Every task handed to the runner is wrapped by its :class:`RetryConfig`
    (a no-op when retry is disabled) before being dispatched through
    :func:`sequence` or :func:`parallel`. Events logged while a run is in
    progress, including those of its tasks, carry ``run`` and ``run_number``.

    Example:
        >>> runner = TaskRunner(limit=4, retry_config=RetryConfig(attempts=3, delay_ms=100))
        >>> reports = await runner.run_batched(report_tasks, size=20)

    Attributes:
        limit: Default concurrency ceiling for parallel runs (None = unbounded)
        retry_config: Retry budget applied to every task
        runs_started: Number of runs started
        runs_completed: Number of runs that returned results
        runs_failed: Number of runs that raised
        tasks_dispatched: Number of tasks handed to the combinators
    """

    def __init__(
        self,
        limit: float | None = None,
        retry_config: RetryConfig | None = None,
    ):
        """Initialize the runner.

        Args:
            limit: Default concurrency ceiling (default: unbounded)
            retry_config: Retry budget (default: retry disabled)

        Raises:
            ValueError: If ``limit`` is not greater than 0
        """
        _validate_limit(limit)

        self.limit = limit
        self.retry_config = retry_config or RetryConfig(attempts=1, enabled=False)

        self.runs_started = 0
        self.runs_completed = 0
        self.runs_failed = 0
        self.tasks_dispatched = 0

        logger.debug(
            "task_runner_initialized",
            limit=limit,
            retry_enabled=self.retry_config.enabled,
            retry_attempts=self.retry_config.attempts,
        )

    @classmethod
    def from_config(cls, config: "ToolbeltConfig") -> "TaskRunner":
        """Create a runner from the ``concurrency`` and ``retry`` sections."""
        return cls(
            limit=config.concurrency.limit,
            retry_config=RetryConfig.from_settings(config.retry),
        )

    def _prepare[T](self, tasks: Iterable[Task[T]]) -> list[Task[T]]:
        prepared = [self.retry_config.wrap(task) for task in tasks]
        self.tasks_dispatched += len(prepared)
        return prepared

    async def _track[T](self, run: str, work: Awaitable[list[T]]) -> list[T]:
        self.runs_started += 1
        with log_context(run=run, run_number=self.runs_started):
            try:
                results = await work
            except Exception as e:
                self.runs_failed += 1
                logger.warning(
                    "task_run_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise
            self.runs_completed += 1
            logger.debug("task_run_completed", result_count=len(results))
        return results

    async def run_sequence[T](self, tasks: Iterable[Task[T]]) -> list[T]:
        """Run tasks one at a time through :func:`sequence`."""
        return await self._track("sequence", sequence(self._prepare(tasks)))

    async def run_parallel[T](
        self,
        tasks: Iterable[Task[T]],
        limit: float | None = None,
    ) -> list[T]:
        """Run tasks through :func:`parallel`.

        Args:
            tasks: Tasks to run
            limit: Overrides the runner's ceiling for this run only
        """
        ceiling = self.limit if limit is None else limit
        _validate_limit(ceiling)
        return await self._track("parallel", parallel(self._prepare(tasks), ceiling))

    async def run_batched[T](self, tasks: Iterable[Task[T]], size: int) -> list[T]:
        """Run tasks chunk by chunk.

        Tasks are split with :func:`batch`; each chunk runs through
        :func:`parallel` and the next chunk starts only once the previous one
        has fully completed. Results are flattened back into input order.

        Args:
            tasks: Tasks to run
            size: Number of tasks per chunk

        Raises:
            ValueError: If ``size`` is not greater than 0
        """
        chunks = [self._prepare(chunk) for chunk in batch(tasks, size)]

        async def run_chunks() -> list[T]:
            chunk_results = []
            for number, chunk in enumerate(chunks, start=1):
                logger.debug(
                    "task_chunk_started",
                    chunk=number,
                    total_chunks=len(chunks),
                    chunk_size=len(chunk),
                )
                chunk_results.append(await parallel(chunk, self.limit))
            return list(itertools.chain.from_iterable(chunk_results))

        return await self._track("batched", run_chunks())

    def get_stats(self) -> dict[str, int]:
        """Return run and dispatch counters.

        Example:
            >>> runner.get_stats()
            {'runs_started': 2, 'runs_completed': 1, 'runs_failed': 1, 'tasks_dispatched': 8}
        """
        return {
            "runs_started": self.runs_started,
            "runs_completed": self.runs_completed,
            "runs_failed": self.runs_failed,
            "tasks_dispatched": self.tasks_dispatched,
        }
