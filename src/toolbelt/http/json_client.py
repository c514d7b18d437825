"""JSON-over-HTTP helpers using httpx.

``get_json`` and ``post_json`` perform a single request and return the parsed
body. They insist on a 2xx status and a JSON content type, and can race the
request against :func:`~toolbelt.tasks.timing.timeout`. ``JSONClient`` binds
the same helpers to a long-lived ``httpx.AsyncClient`` with default headers,
base URL and timeout.
"""

import json
import types
from typing import TYPE_CHECKING, Any

import httpx

from toolbelt.log_config import get_logger
from toolbelt.tasks.timing import timeout

if TYPE_CHECKING:
    from toolbelt.config import HttpSettings

# Initialize logger
logger = get_logger(__name__)

type JSONValue = str | int | float | bool | None | dict[str, JSONValue] | list[JSONValue]

JSON_CONTENT_TYPE = "application/json"

# httpx request arguments that would compete with post_json's serialized body
BODY_ARGUMENTS = frozenset({"content", "data", "files", "json"})


class JSONRequestError(Exception):
    """Base class for responses that could not be turned into JSON.

    Attributes:
        url: The requested URL
    """

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


class ResponseStatusError(JSONRequestError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"Request to {url} failed with status {status_code}", url)
        self.status_code = status_code


class UnexpectedContentTypeError(JSONRequestError):
    """Raised when the response is not declared as JSON."""

    def __init__(self, url: str, content_type: str):
        super().__init__(
            f"Expected JSON response from {url} but got content-type: {content_type}",
            url,
        )
        self.content_type = content_type


def _parse_response(url: str, response: httpx.Response) -> JSONValue:
    if not response.is_success:
        logger.warning("json_request_failed", url=url, status_code=response.status_code)
        raise ResponseStatusError(url, response.status_code)

    content_type = response.headers.get("content-type", "")
    if JSON_CONTENT_TYPE not in content_type:
        logger.warning("json_request_unexpected_content_type", url=url, content_type=content_type)
        raise UnexpectedContentTypeError(url, content_type)

    return response.json()


async def _send(
    client: httpx.AsyncClient,
    url: str,
    method: str,
    headers: httpx.Headers | dict[str, str] | None,
    request_kwargs: dict[str, Any],
) -> JSONValue:
    logger.debug("json_request_started", method=method, url=url)
    response = await client.request(method, url, headers=headers, **request_kwargs)
    data = _parse_response(url, response)
    logger.debug("json_request_completed", method=method, url=url, status_code=response.status_code)
    return data


async def _send_with_own_client(
    url: str,
    method: str,
    headers: httpx.Headers | dict[str, str] | None,
    request_kwargs: dict[str, Any],
) -> JSONValue:
    async with httpx.AsyncClient() as client:
        return await _send(client, url, method, headers, request_kwargs)


async def get_json(
    url: str,
    *,
    method: str = "GET",
    headers: httpx.Headers | dict[str, str] | None = None,
    timeout_ms: float | None = None,
    client: httpx.AsyncClient | None = None,
    **request_kwargs: Any,
) -> JSONValue:
    """Request ``url`` and return the parsed JSON body.

    Args:
        url: URL to request
        method: HTTP method (default: GET)
        headers: Extra request headers
        timeout_ms: Give up waiting after this many milliseconds (falsy = no limit)
        client: Client to send through; a short-lived one is created when omitted
        **request_kwargs: Passed through to ``httpx.AsyncClient.request``
            (``content``, ``params``, ...)

    A timed-out request is not cancelled. It finishes in the background and
    its outcome is discarded; a short-lived client is closed only once that
    request is done.

    Returns:
        The decoded JSON document

    Raises:
        ResponseStatusError: If the status is not 2xx
        UnexpectedContentTypeError: If the content type is not JSON
        OperationTimeoutError: If ``timeout_ms`` elapses first
        httpx.HTTPError: If the transport fails

    Example:
        >>> user = await get_json("https://api.example.com/users/1", timeout_ms=5000)
    """
    if client is not None:
        operation = _send(client, url, method, headers, request_kwargs)
    else:
        operation = _send_with_own_client(url, method, headers, request_kwargs)

    if not timeout_ms:
        return await operation
    return await timeout(operation, timeout_ms, f"Request to {url} timed out after {timeout_ms}ms")


def _json_headers(headers: httpx.Headers | dict[str, str] | None) -> httpx.Headers:
    merged = httpx.Headers({"Content-Type": JSON_CONTENT_TYPE})
    if headers:
        merged.update(headers)
    return merged


async def post_json(
    url: str,
    body: Any,
    *,
    headers: httpx.Headers | dict[str, str] | None = None,
    timeout_ms: float | None = None,
    client: httpx.AsyncClient | None = None,
    **request_kwargs: Any,
) -> JSONValue:
    """POST ``body`` as JSON to ``url`` and return the parsed JSON response.

    ``Content-Type: application/json`` is sent unless ``headers`` overrides it.
    Response handling and timeouts behave exactly as in :func:`get_json`.

    Raises:
        TypeError: If ``request_kwargs`` also supplies a body
            (``content``, ``data``, ``files`` or ``json``)
    """
    conflicting = BODY_ARGUMENTS.intersection(request_kwargs)
    if conflicting:
        msg = f"post_json serializes body itself; got conflicting {', '.join(sorted(conflicting))}"
        raise TypeError(msg)

    return await get_json(
        url,
        method="POST",
        headers=_json_headers(headers),
        timeout_ms=timeout_ms,
        client=client,
        content=json.dumps(body),
        **request_kwargs,
    )


class JSONClient:
    """JSON client bound to a reusable httpx connection pool.

    Example:
        >>> async with JSONClient(base_url="https://api.example.com", timeout_ms=5000) as api:
        ...     user = await api.get_json("/users/1")
        ...     created = await api.post_json("/users", {"name": "Ada"})
    """

    def __init__(
        self,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        timeout_ms: float | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Prefix for relative URLs
            headers: Headers sent with every request
            timeout_ms: Default timeout per request in milliseconds (None = no limit)
        """
        self.base_url = base_url
        self.timeout_ms = timeout_ms
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers or {},
        )
        logger.debug("json_client_initialized", base_url=base_url, timeout_ms=timeout_ms)

    @classmethod
    def from_settings(cls, settings: "HttpSettings") -> "JSONClient":
        """Create a client from the ``http`` section of the configuration."""
        return cls(
            base_url=settings.base_url,
            headers=dict(settings.headers),
            timeout_ms=settings.timeout_ms,
        )

    def _timeout(self, timeout_ms: float | None) -> float | None:
        return self.timeout_ms if timeout_ms is None else timeout_ms

    async def get_json(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        timeout_ms: float | None = None,
        **request_kwargs: Any,
    ) -> JSONValue:
        """Request ``url`` through this client; see :func:`get_json`."""
        return await get_json(
            url,
            method=method,
            headers=headers,
            timeout_ms=self._timeout(timeout_ms),
            client=self.client,
            **request_kwargs,
        )

    async def post_json(
        self,
        url: str,
        body: Any,
        *,
        headers: dict[str, str] | None = None,
        timeout_ms: float | None = None,
        **request_kwargs: Any,
    ) -> JSONValue:
        """POST ``body`` through this client; see :func:`post_json`."""
        return await post_json(
            url,
            body,
            headers=headers,
            timeout_ms=self._timeout(timeout_ms),
            client=self.client,
            **request_kwargs,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "JSONClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.close()
