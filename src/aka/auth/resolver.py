"""Authorization header resolution with fixed precedence.

Every API call asks :func:`resolve_authorization` for the value of its
``authorization`` header. The sources are checked in order and the first
one that yields a value wins:

1. ``API_AUTH`` -- a shared secret, sent verbatim.
2. ``API_TOKEN`` -- a bearer token, sent as ``Bearer <token>``.
3. The ``--authtoken`` CLI flag, sent as ``Bearer <token>``.
4. The credential-file entry for the API host, sent as ``Bearer <secret>``.
5. Nothing -- the request goes out unauthenticated.

The resolution is repeated for every request rather than cached, because the
environment and flags can override the credential file at any time.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:
    from aka.context import Context

SHARED_SECRET_VAR = "API_AUTH"
BEARER_TOKEN_VAR = "API_TOKEN"


class AuthorizationSource(str, Enum):
    """Where a resolved authorization value came from."""

    SHARED_SECRET = "shared_secret"
    BEARER_ENV = "bearer_env"
    CLI_FLAG = "cli_flag"
    CREDENTIAL_FILE = "credential_file"


def resolve_authorization_with_source(
    context: Context,
    environ: Optional[Mapping[str, str]] = None,
) -> tuple[Optional[str], Optional[AuthorizationSource]]:
    """Resolve the authorization header value and report which source supplied it.

    Args:
        context: The shared context; ``cli_token`` and ``credential`` are read.
        environ: Environment mapping; defaults to :data:`os.environ`.

    Returns:
        ``(value, source)``, or ``(None, None)`` when no source applies.
    """
    env = os.environ if environ is None else environ

    shared_secret = env.get(SHARED_SECRET_VAR)
    if shared_secret:
        return shared_secret, AuthorizationSource.SHARED_SECRET

    token = env.get(BEARER_TOKEN_VAR)
    if token:
        return f"Bearer {token}", AuthorizationSource.BEARER_ENV

    if context.cli_token:
        return f"Bearer {context.cli_token}", AuthorizationSource.CLI_FLAG

    if context.credential is not None and context.credential.secret:
        return f"Bearer {context.credential.secret}", AuthorizationSource.CREDENTIAL_FILE

    return None, None


def resolve_authorization(
    context: Context,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Return the ``authorization`` header value for the next request, or ``None``."""
    value, _source = resolve_authorization_with_source(context, environ)
    return value
