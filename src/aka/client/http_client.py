"""Asynchronous single-request HTTP client with explicit result types.

:class:`HttpClient` performs one HTTP(S) request per call on top of
:class:`httpx.AsyncClient` and never raises for HTTP or network failures.
Instead every call returns exactly one of:

* :class:`HttpSuccess` -- a 2xx response. The body is ``bytes`` for archive
  content types and UTF-8 text otherwise.
* :class:`HttpFailure` -- any other status, with the status code, the body
  bytes as received (not gunzipped), and headers.
* :class:`TransportFailure` -- the request never produced a response (DNS
  failure, refused connection, TLS error, redirect loop).

All three expose ``ok`` so callers can branch without looking at status
codes again.

Redirects are followed by hand: only ``GET`` requests answered with 301 or
302 and a ``location`` header are re-issued, with the same headers and no
body, and at most :data:`MAX_REDIRECTS` times.

See Also:
    :class:`~aka.client.api_client.ApiClient` -- adds the API base URL,
    JSON handling, and authorization on top of this client.
"""

from __future__ import annotations

import gzip
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5
"""Maximum number of redirect hops followed for one call."""

REDIRECT_STATUSES = frozenset({301, 302})

GZIP_ENCODINGS = frozenset({"gzip", "x-gzip"})

BINARY_CONTENT_TYPES = frozenset(
    {
        "application/zip",
        "application/gzip",
        "application/x-gzip",
        "application/x-tar",
        "application/octet-stream",
    }
)
"""Content types whose success bodies are returned as raw ``bytes``."""


class RedirectLoopError(Exception):
    """Raised into a :class:`TransportFailure` when a redirect chain exceeds the hop limit."""


@dataclass(frozen=True)
class HttpRequest:
    """One outgoing request. Header lookups are case-insensitive."""

    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Optional[Union[str, bytes]] = None


@dataclass(frozen=True)
class HttpSuccess:
    """A 2xx response with its decoded body."""

    body: Union[str, bytes]
    headers: httpx.Headers
    status_code: int = 200
    url: str = ""

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class HttpFailure:
    """A response whose status is outside ``[200, 300)``.

    ``body`` holds the bytes as received, still gzip-compressed when the
    server sent ``content-encoding: gzip``; :attr:`text` decodes them.
    """

    status_code: int
    body: bytes
    headers: httpx.Headers
    url: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def text(self) -> str:
        body = self.body
        if self.headers.get("content-encoding", "").lower() in GZIP_ENCODINGS:
            try:
                body = gzip.decompress(body)
            except (OSError, EOFError) as exc:
                logger.debug("Failure body from %s is not valid gzip: %s", self.url, exc)
        return body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class TransportFailure:
    """A request that failed before any response was classified."""

    error: Exception
    url: str = ""

    @property
    def ok(self) -> bool:
        return False


HttpResult = Union[HttpSuccess, HttpFailure, TransportFailure]


def is_redirect(method: str, status_code: int, headers: httpx.Headers) -> bool:
    """Return True when a response must be followed as a redirect."""
    return (
        method.upper() == "GET"
        and status_code in REDIRECT_STATUSES
        and bool(headers.get("location"))
    )


def is_binary_content_type(headers: httpx.Headers) -> bool:
    """Return True when the response declares one of :data:`BINARY_CONTENT_TYPES`."""
    content_type = headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() in BINARY_CONTENT_TYPES


class HttpClient:
    """Single-call asynchronous HTTP client.

    Each :meth:`request` opens its own :class:`httpx.AsyncClient` and closes
    it before returning, so one instance can be shared by commands that run
    their calls under separate :func:`asyncio.run` loops.

    Args:
        timeout: Seconds to wait for the server; ``None`` waits indefinitely.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).
        max_redirects: Redirect hop limit per call.

    Example::

        client = HttpClient()
        result = asyncio.run(client.get("https://example.io/health"))
        if result.ok:
            print(result.body)
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_redirects: int = MAX_REDIRECTS,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._max_redirects = max_redirects

    async def request(
        self,
        method: str,
        body: Optional[Union[str, bytes]],
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResult:
        """Send one request, following GET redirects, and classify the outcome.

        Args:
            method: HTTP method, case-insensitive.
            body: Request body, or ``None``.
            url: Absolute ``http://`` or ``https://`` URL.
            headers: Request headers.

        Returns:
            An :class:`HttpSuccess`, :class:`HttpFailure`, or
            :class:`TransportFailure`.
        """
        request = HttpRequest(
            method=method.upper(),
            url=url,
            headers=httpx.Headers(dict(headers or {})),
            body=body,
        )

        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=False,
        ) as client:
            hops = 0
            while True:
                logger.debug("%s %s", request.method, request.url)
                try:
                    response = await self._send(client, request)
                    try:
                        if not is_redirect(request.method, response.status_code, response.headers):
                            return await self._classify(request, response)
                    finally:
                        await response.aclose()
                except (httpx.RequestError, httpx.InvalidURL) as exc:
                    logger.debug("%s %s failed: %s", request.method, request.url, exc)
                    return TransportFailure(error=exc, url=request.url)

                if hops >= self._max_redirects:
                    return TransportFailure(
                        error=RedirectLoopError(
                            f"Stopped after {self._max_redirects} redirects at {request.url}"
                        ),
                        url=request.url,
                    )
                hops += 1
                location = urljoin(request.url, response.headers["location"])
                logger.debug("Following %d redirect to %s", response.status_code, location)
                request = HttpRequest(method="GET", url=location, headers=request.headers)

    async def get(self, url: str, headers: Optional[Mapping[str, str]] = None) -> HttpResult:
        return await self.request("GET", None, url, headers)

    async def post(
        self, body: Optional[Union[str, bytes]], url: str, headers: Optional[Mapping[str, str]] = None
    ) -> HttpResult:
        return await self.request("POST", body, url, headers)

    async def patch(
        self, body: Optional[Union[str, bytes]], url: str, headers: Optional[Mapping[str, str]] = None
    ) -> HttpResult:
        return await self.request("PATCH", body, url, headers)

    async def put(
        self, body: Optional[Union[str, bytes]], url: str, headers: Optional[Mapping[str, str]] = None
    ) -> HttpResult:
        return await self.request("PUT", body, url, headers)

    async def delete(self, url: str, headers: Optional[Mapping[str, str]] = None) -> HttpResult:
        return await self.request("DELETE", None, url, headers)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    async def _send(client: httpx.AsyncClient, request: HttpRequest) -> httpx.Response:
        """Send *request* and return the response with its body still unread."""
        kwargs: dict[str, Any] = {"headers": request.headers}
        if request.body is not None:
            kwargs["content"] = request.body
        outgoing = client.build_request(request.method, request.url, **kwargs)
        return await client.send(outgoing, stream=True)

    @staticmethod
    async def _read_raw(response: httpx.Response) -> bytes:
        """Return the body exactly as it came over the wire, content-encoding included."""
        if response.is_stream_consumed:
            # Built from in-memory content; the stream still yields the raw bytes.
            return b"".join([chunk async for chunk in response.stream])
        return b"".join([chunk async for chunk in response.aiter_raw()])

    @classmethod
    async def _classify(cls, request: HttpRequest, response: httpx.Response) -> HttpResult:
        if not 200 <= response.status_code < 300:
            logger.debug("%s %s -> %d", request.method, request.url, response.status_code)
            return HttpFailure(
                status_code=response.status_code,
                body=await cls._read_raw(response),
                headers=response.headers,
                url=request.url,
            )

        # aread() removes a gzip content-encoding.
        content = await response.aread()
        body: Union[str, bytes]
        if is_binary_content_type(response.headers):
            body = content
        else:
            body = content.decode("utf-8", errors="replace")
        return HttpSuccess(
            body=body,
            headers=response.headers,
            status_code=response.status_code,
            url=request.url,
        )
