"""Akkeris API client -- base URL, JSON, and authorization on top of :class:`HttpClient`.

:class:`ApiClient` is what plugins use to talk to the platform API. For each
call it:

1. Resolves the target: absolute URLs are used as-is, paths are joined to
   the configured API host (``https://`` is prefixed when the host has no
   scheme).
2. Builds headers: ``content-type: application/json`` unless the caller set
   one, ``user-agent: aka-cli/<version>``, and the ``authorization`` value
   from :func:`~aka.auth.resolver.resolve_authorization`, re-resolved on
   every call.
3. Delegates the request to :class:`~aka.client.http_client.HttpClient`
   (one attempt, no retries).
4. Turns the result into data or an exception: a success body is parsed as
   JSON, an :class:`~aka.client.http_client.HttpFailure` becomes an
   :class:`~aka.exceptions.ApiResponseError` subclass, and a
   :class:`~aka.client.http_client.TransportFailure` becomes
   :class:`~aka.exceptions.ConnectionError_`.

Callers that want the raw result value instead of exceptions use
:meth:`ApiClient.request`.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from aka.auth.resolver import resolve_authorization
from aka.client.http_client import (
    HttpClient,
    HttpFailure,
    HttpResult,
    TransportFailure,
)
from aka.exceptions import (
    ApiResponseError,
    AuthError,
    ConnectionError_,
    NotFoundError,
    ResponseParseError,
    ServerError,
)

if TYPE_CHECKING:
    from aka.context import Context

Body = Union[str, bytes, dict, list, None]


class ApiClient:
    """Authenticated client for the Akkeris platform API.

    Args:
        context: The shared context; supplies the API host, the client
            version for ``user-agent``, and the authorization sources.
        http: The underlying :class:`HttpClient`. Defaults to a new client
            using the configured request timeout.

    Example::

        apps = asyncio.run(context.api.get("/apps"))
    """

    def __init__(self, context: Context, http: Optional[HttpClient] = None) -> None:
        self._context = context
        self._http = http or HttpClient(timeout=context.config.request_timeout)

    @property
    def user_agent(self) -> str:
        return f"aka-cli/{self._context.config.package.version}"

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def resolve_url(self, path_or_url: str) -> str:
        """Return *path_or_url* as an absolute URL on the configured API host."""
        if path_or_url.startswith("http"):
            return path_or_url
        return f"{self._context.config.api_url}{path_or_url}"

    def build_headers(self, headers: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        """Return the headers for one API request.

        Caller-supplied headers are kept; ``content-type`` is only defaulted,
        while ``user-agent`` and ``authorization`` are always set here.
        """
        merged = {key.lower(): value for key, value in (headers or {}).items()}
        merged.setdefault("content-type", "application/json")
        merged["user-agent"] = self.user_agent
        authorization = resolve_authorization(self._context)
        if authorization:
            merged["authorization"] = authorization
        return merged

    async def request(
        self,
        method: str,
        body: Body,
        path_or_url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResult:
        """Send one API request and return the raw result value."""
        payload: Optional[Union[str, bytes]]
        if isinstance(body, (dict, list)):
            payload = json.dumps(body)
        else:
            payload = body
        return await self._http.request(
            method,
            payload,
            self.resolve_url(path_or_url),
            self.build_headers(headers),
        )

    async def call(
        self,
        method: str,
        body: Body,
        path_or_url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send one API request and return the decoded body.

        Returns:
            The parsed JSON value, ``None`` for an empty body, or ``bytes``
            for archive content types.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On 5xx.
            ApiResponseError: On any other non-2xx status.
            ConnectionError_: When no response was received.
            ResponseParseError: When a success body is not valid JSON.
        """
        result = await self.request(method, body, path_or_url, headers)
        return self.unwrap(result)

    async def get(self, path_or_url: str) -> Any:
        return await self.call("GET", None, path_or_url)

    async def post(self, body: Body, path_or_url: str) -> Any:
        return await self.call("POST", body, path_or_url)

    async def patch(self, body: Body, path_or_url: str) -> Any:
        return await self.call("PATCH", body, path_or_url)

    async def put(self, body: Body, path_or_url: str) -> Any:
        return await self.call("PUT", body, path_or_url)

    async def delete(self, path_or_url: str) -> Any:
        return await self.call("DELETE", None, path_or_url)

    # ------------------------------------------------------------------ #
    # Result handling
    # ------------------------------------------------------------------ #

    @staticmethod
    def unwrap(result: HttpResult) -> Any:
        """Return the decoded body of *result* or raise the matching exception."""
        if isinstance(result, TransportFailure):
            raise ConnectionError_(
                f"Could not reach {result.url}: {result.error}", failure=result
            )
        if isinstance(result, HttpFailure):
            raise _failure_error(result)

        if isinstance(result.body, bytes):
            return result.body
        if not result.body.strip():
            return None
        try:
            return json.loads(result.body)
        except json.JSONDecodeError as exc:
            raise ResponseParseError(
                f"Expected JSON from {result.url} but could not parse the response: {exc}"
            ) from exc


def _failure_error(failure: HttpFailure) -> ApiResponseError:
    """Map an :class:`HttpFailure` to the exception type for its status."""
    message = f"HTTP {failure.status_code}"
    detail = _error_detail(failure)
    if detail:
        message = f"{message}: {detail}"

    status = failure.status_code
    if status in (401, 403):
        return AuthError(message, failure=failure)
    if status == 404:
        return NotFoundError(message, failure=failure)
    if status >= 500:
        return ServerError(message, failure=failure)
    return ApiResponseError(message, failure=failure)


def _error_detail(failure: HttpFailure) -> str:
    """Extract a short message from an error body, JSON or text."""
    text = failure.text.strip()
    if not text:
        return ""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return text[:200]
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload.get("detail") or "")
    return str(payload)[:200]
