"""Built-in ``auth`` plugin: who am I, and which token is in use."""

from __future__ import annotations

import asyncio
import logging

import typer

from aka.auth.resolver import resolve_authorization_with_source
from aka.context import get_context
from aka.exceptions import AuthError
from aka.output import format_response, print_data

group = "Auth"

app = typer.Typer(no_args_is_help=True)

logger = logging.getLogger("aka.plugins.auth")


def init(context) -> None:
    _value, source = resolve_authorization_with_source(context)
    logger.debug("Authorization source: %s", source.value if source else "none")


@app.command("whoami")
def whoami(ctx: typer.Context) -> None:
    """Show the account the current credentials belong to."""
    context = get_context(ctx)
    format_response(asyncio.run(context.api.get("/account")))


@app.command("token")
def token(ctx: typer.Context) -> None:
    """Print the authorization value aka sends to the API."""
    value, source = resolve_authorization_with_source(get_context(ctx))
    if value is None:
        raise AuthError("Not logged in. Add a credential for the API host to ~/.netrc or set API_TOKEN.")
    logger.debug("Token from %s", source.value)
    print_data(value)
