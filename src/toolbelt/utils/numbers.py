"""Number helpers."""

import random


def random_number(minimum: int, maximum: int) -> int:
    """Return a random integer between ``minimum`` and ``maximum``, both inclusive.

    Raises:
        ValueError: If ``minimum`` is greater than ``maximum``
    """
    if minimum > maximum:
        msg = f"minimum ({minimum}) must not be greater than maximum ({maximum})"
        raise ValueError(msg)
    return random.randint(minimum, maximum)  # noqa: S311


def is_even(num: int) -> bool:
    # Negative odd numbers are odd too: -3 % 2 == 1
    return num % 2 == 0


def clamp(num: float, minimum: float, maximum: float) -> float:
    """Snap ``num`` into the ``[minimum, maximum]`` range."""
    return min(max(num, minimum), maximum)
