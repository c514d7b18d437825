"""JSON-over-HTTP helpers built on httpx."""

from .json_client import (
    JSONClient,
    JSONRequestError,
    JSONValue,
    ResponseStatusError,
    UnexpectedContentTypeError,
    get_json,
    post_json,
)

__all__ = [
    "JSONClient",
    "JSONRequestError",
    "JSONValue",
    "ResponseStatusError",
    "UnexpectedContentTypeError",
    "get_json",
    "post_json",
]
