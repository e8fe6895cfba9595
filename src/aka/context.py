"""The shared context handed to every command and plugin.

A :class:`Context` is built once per process by :func:`create_context`
and passed explicitly: Typer commands receive it through
``typer.Context.obj`` (see :func:`get_context`), plugin hooks receive it as
their only argument. Nothing in aka looks it up from a global.

After startup the context is read-only except for ``registry``, which the
:class:`~aka.plugins.loader.PluginLoader` fills during loading.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

import typer

from aka.auth.netrc_store import Credential, load_credential
from aka.client.api_client import ApiClient
from aka.client.http_client import HttpClient
from aka.models import AkaConfig
from aka.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)


@dataclass
class Context:
    """Process-wide state shared by the core, commands, and plugins.

    Attributes:
        config: Frozen runtime configuration.
        credential: Credential-file entry for the API host, if any.
        registry: Loaded plugins in load order.
        cli_token: Value of the global ``--authtoken`` flag, if given.
        http: Plain HTTP client for non-API URLs.
        api: Authenticated client for the platform API.
    """

    config: AkaConfig
    credential: Optional[Credential] = None
    registry: PluginRegistry = field(default_factory=PluginRegistry)
    cli_token: Optional[str] = None
    http: Optional[HttpClient] = None
    api: ApiClient = field(init=False)

    def __post_init__(self) -> None:
        if self.http is None:
            self.http = HttpClient(timeout=self.config.request_timeout)
        self.api = ApiClient(self, http=self.http)


def create_context(
    config: AkaConfig,
    cli_token: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Context:
    """Build the process context, reading the credential file once.

    Args:
        config: The loaded configuration.
        cli_token: The ``--authtoken`` flag value.
        environ: Environment mapping used to locate the credential file.
    """
    credential = load_credential(config.api_host, environ=environ)
    if credential is not None:
        logger.debug("Using stored credential for %s", credential.host)
    return Context(config=config, credential=credential, cli_token=cli_token)


def get_context(ctx: typer.Context) -> Context:
    """Return the aka :class:`Context` stored on a Typer invocation context.

    Raises:
        RuntimeError: If called outside a command started by :func:`aka.app.main`.
    """
    root = ctx.find_root()
    if not isinstance(root.obj, Context):
        raise RuntimeError("aka context is not initialised; run commands through aka.app.main")
    return root.obj
