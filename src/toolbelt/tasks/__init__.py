"""Async task combinators.

This package contains the helpers for driving deferred async work: strict
sequencing, bounded-concurrency fan-out, fixed-delay retry, chunking, and the
sleep/timeout primitives they build on.
"""

from toolbelt.tasks.retry import RetryConfig, retry
from toolbelt.tasks.runner import Task, TaskRunner, batch, parallel, sequence
from toolbelt.tasks.timing import OperationTimeoutError, sleep, timeout

__all__ = [
    "OperationTimeoutError",
    "RetryConfig",
    "Task",
    "TaskRunner",
    "batch",
    "parallel",
    "retry",
    "sequence",
    "sleep",
    "timeout",
]
