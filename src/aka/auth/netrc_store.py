"""Credential-file lookup keyed by API hostname.

The Akkeris login flow writes the user's token into the standard ``netrc``
file (``~/.netrc``, or the path in ``$NETRC``) under the API host. This
module reads that file once at startup with the standard library
:mod:`netrc` parser and returns the entry for the configured API host as a
:class:`Credential`.

A missing, unreadable, or malformed file is not an error: the client simply
runs unauthenticated and the API answers 401 where it has to.
"""

from __future__ import annotations

import logging
import netrc
import os
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from aka.config import get_home

logger = logging.getLogger(__name__)


class Credential(BaseModel):
    """A single credential-file entry for one host.

    Attributes:
        host: The machine name the entry was found under.
        login: The login (usually the user's email), if recorded.
        secret: The token stored as the entry's password.
    """

    host: str = Field(description="Machine name in the credential file")
    login: Optional[str] = Field(default=None, description="Login recorded for the host")
    secret: str = Field(description="Token stored as the entry's password")


def default_netrc_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return ``$NETRC`` if set, else ``<home>/.netrc``."""
    env = os.environ if environ is None else environ
    override = env.get("NETRC")
    if override:
        return Path(override).expanduser()
    return get_home(environ) / ".netrc"


def host_candidates(api_host: str) -> list[str]:
    """Return the machine names to try for *api_host*, most specific first.

    ``https://apps.example.io/`` yields ``["https://apps.example.io/",
    "apps.example.io"]``; a bare host yields just itself.
    """
    candidates = [api_host]
    if "://" in api_host:
        hostname = urlsplit(api_host).hostname
        if hostname and hostname not in candidates:
            candidates.append(hostname)
    return candidates


def load_credential(
    api_host: str,
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[Credential]:
    """Look up the credential stored for *api_host*.

    Args:
        api_host: The configured API host, with or without a scheme.
        path: Credential file to read; defaults to :func:`default_netrc_path`.
        environ: Environment mapping used to find the default path.

    Returns:
        The :class:`Credential`, or ``None`` when the file is absent,
        unparseable, or has no usable entry for the host.
    """
    netrc_path = path or default_netrc_path(environ)
    if not netrc_path.is_file():
        logger.debug("No credential file at %s", netrc_path)
        return None

    try:
        parsed = netrc.netrc(str(netrc_path))
    except (netrc.NetrcParseError, OSError) as exc:
        logger.debug("Cannot read credential file %s: %s", netrc_path, exc)
        return None

    for host in host_candidates(api_host):
        entry = parsed.authenticators(host)
        if entry is None:
            continue
        login, _account, password = entry
        if not password:
            continue
        return Credential(host=host, login=login or None, secret=password)

    logger.debug("No credential for %s in %s", api_host, netrc_path)
    return None
