"""Exception hierarchy for aka.

All exceptions inherit from :class:`AkaError`, which carries an ``exit_code``
attribute mapped to a constant from :mod:`aka.exit_codes`. The top-level
error handler in :func:`aka.app.main` catches ``AkaError`` and exits with the
appropriate code, while unexpected exceptions produce a crash log and exit
with :data:`EXIT_GENERIC_FAILURE`.

The HTTP client itself never raises for HTTP or transport failures; it
returns :class:`~aka.client.http_client.HttpFailure` and
:class:`~aka.client.http_client.TransportFailure` values. The API client
turns those values into the exceptions below so that command handlers can
let them propagate to :func:`~aka.app.main`.

Subclass hierarchy::

    AkaError (exit 1)
    +-- ApiResponseError     (exit 5)
    |   +-- AuthError        (exit 3)
    |   +-- NotFoundError    (exit 4)
    |   +-- ServerError      (exit 5)
    +-- ConnectionError_     (exit 6)
    +-- ResponseParseError   (exit 7)
    +-- PluginError          (exit 10)
    +-- ConfigError          (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from aka.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_PLUGIN_ERROR,
    EXIT_RESPONSE_PARSE_ERROR,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    from aka.client.http_client import HttpFailure, TransportFailure


class AkaError(Exception):
    """Base exception for all aka errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`aka.exit_codes`. The entry point catches this
    exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ApiResponseError(AkaError):
    """Raised by the API client when the server answers with a non-2xx status.

    Attributes:
        failure: The :class:`~aka.client.http_client.HttpFailure` value the
            HTTP client produced, with the status code, raw body bytes, and
            response headers.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, failure: Optional[HttpFailure] = None):
        super().__init__(message)
        self.failure = failure

    @property
    def status_code(self) -> int:
        return self.failure.status_code if self.failure is not None else 0


class AuthError(ApiResponseError):
    """Raised when the API rejects the credentials (HTTP 401 / 403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(ApiResponseError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(ApiResponseError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(AkaError):
    """Raised on network-level failures (DNS resolution, connection refused, redirect loops).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.

    Attributes:
        failure: The :class:`~aka.client.http_client.TransportFailure` value
            wrapping the underlying transport exception.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, failure: Optional[TransportFailure] = None):
        super().__init__(message)
        self.failure = failure


class ResponseParseError(AkaError):
    """Raised when a successful API response body is not valid JSON."""

    exit_code = EXIT_RESPONSE_PARSE_ERROR


class PluginError(AkaError):
    """Raised when a plugin cannot be loaded, installed, removed, or run."""

    exit_code = EXIT_PLUGIN_ERROR


class ConfigError(AkaError):
    """Raised for fatal startup problems (missing environment, unusable config directory)."""

    exit_code = EXIT_GENERIC_FAILURE
