"""Small string and number helpers."""

from .numbers import clamp, is_even, random_number
from .strings import capitalize, is_empty, reverse

__all__ = ["capitalize", "clamp", "is_empty", "is_even", "random_number", "reverse"]
