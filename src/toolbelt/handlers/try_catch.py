"""Result-tuple error handling.

For call sites that prefer ``value, error = ...`` over ``try``/``except``::

    user, err = await try_catch(lambda: get_json(f"/users/{user_id}"))
    if err:
        ...
"""

import inspect
from collections.abc import Awaitable, Callable

type TryCatchResult[T] = tuple[T, None] | tuple[None, Exception]


async def try_catch[T](fn: Callable[[], Awaitable[T] | T]) -> TryCatchResult[T]:
    """Call ``fn`` and capture its outcome instead of raising.

    ``fn`` may be synchronous or return an awaitable; awaitables are awaited.

    Returns:
        ``(value, None)`` on success, ``(None, error)`` if ``fn`` raised
    """
    try:
        data = fn()
        if inspect.isawaitable(data):
            data = await data
    except Exception as e:
        return None, e
    return data, None
