"""Async task combinators, JSON-over-HTTP helpers and small utilities.

Example:
    >>> from toolbelt import get_json, parallel, retry
    >>> urls = [f"https://api.example.com/items/{i}" for i in range(20)]
    >>> items = await parallel(
    ...     [lambda u=u: retry(lambda: get_json(u, timeout_ms=5000), 3, 200) for u in urls],
    ...     limit=5,
    ... )
"""

from toolbelt.handlers import TryCatchResult, try_catch
from toolbelt.http import (
    JSONClient,
    JSONRequestError,
    JSONValue,
    ResponseStatusError,
    UnexpectedContentTypeError,
    get_json,
    post_json,
)
from toolbelt.tasks import (
    OperationTimeoutError,
    RetryConfig,
    Task,
    TaskRunner,
    batch,
    parallel,
    retry,
    sequence,
    sleep,
    timeout,
)
from toolbelt.utils import capitalize, clamp, is_empty, is_even, random_number, reverse

__all__ = [
    "JSONClient",
    "JSONRequestError",
    "JSONValue",
    "OperationTimeoutError",
    "ResponseStatusError",
    "RetryConfig",
    "Task",
    "TaskRunner",
    "TryCatchResult",
    "UnexpectedContentTypeError",
    "batch",
    "capitalize",
    "clamp",
    "get_json",
    "is_empty",
    "is_even",
    "parallel",
    "post_json",
    "random_number",
    "retry",
    "reverse",
    "sequence",
    "sleep",
    "timeout",
    "try_catch",
]
