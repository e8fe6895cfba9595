"""Authentication for aka API calls.

* :mod:`aka.auth.netrc_store` -- reads the credential stored for the API
  host in the user's ``netrc`` file.
* :mod:`aka.auth.resolver` -- picks the ``authorization`` header value for
  each request from the environment, the ``--authtoken`` flag, or the stored
  credential, in that order.
"""

from aka.auth.netrc_store import Credential, load_credential
from aka.auth.resolver import (
    AuthorizationSource,
    resolve_authorization,
    resolve_authorization_with_source,
)

__all__ = [
    "AuthorizationSource",
    "Credential",
    "load_credential",
    "resolve_authorization",
    "resolve_authorization_with_source",
]
