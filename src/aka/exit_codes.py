"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~aka.exceptions.AkaError` subclass. Shell wrappers can
inspect the exit code to tell a rejected token from an unreachable API
without parsing stderr.

Example::

    $ aka apps info missing-app
    $ echo $?
    4   # EXIT_NOT_FOUND -- the API answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, including fatal startup configuration errors."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments, an unknown command, or none at all."""

EXIT_AUTH_FAILURE = 3
"""The API rejected the request credentials (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The API answered with a non-success status other than 401, 403 or 404."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (DNS failure, connection refused, redirect loop)."""

EXIT_RESPONSE_PARSE_ERROR = 7
"""The API answered successfully but the body was not valid JSON."""

EXIT_PLUGIN_ERROR = 10
"""A plugin could not be installed, removed, or run."""

EXIT_INTERRUPTED = 130
"""The user cancelled the command with Ctrl-C."""
