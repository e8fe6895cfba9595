"""HTTP clients for aka.

* :class:`HttpClient` -- one asynchronous HTTP(S) request per call, backed by
  :class:`httpx.AsyncClient`, returning an :class:`HttpSuccess`,
  :class:`HttpFailure`, or :class:`TransportFailure` value.
* :class:`ApiClient` -- resolves paths against the API host, attaches the
  ``authorization`` header, and decodes JSON.

Example::

    from aka.client import ApiClient

    apps = asyncio.run(ApiClient(context).get("/apps"))
"""

from aka.client.api_client import ApiClient
from aka.client.http_client import (
    HttpClient,
    HttpFailure,
    HttpResult,
    HttpSuccess,
    TransportFailure,
)

__all__ = [
    "ApiClient",
    "HttpClient",
    "HttpFailure",
    "HttpResult",
    "HttpSuccess",
    "TransportFailure",
]
