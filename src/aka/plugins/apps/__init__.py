"""Built-in ``apps`` plugin: list applications and show one app."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from aka.context import get_context
from aka.output import format_response, print_table

group = "Apps"

app = typer.Typer(no_args_is_help=True)


def _space_name(item: dict) -> str:
    space = item.get("space")
    if isinstance(space, dict):
        return str(space.get("name", ""))
    return str(space or "")


@app.command("list")
def list_apps(
    ctx: typer.Context,
    space: Optional[str] = typer.Option(None, "--space", "-s", help="Only show apps in this space."),
) -> None:
    """List apps you have access to."""
    context = get_context(ctx)
    apps = asyncio.run(context.api.get("/apps")) or []
    rows = [
        [str(item.get("name", "")), _space_name(item), str(item.get("web_url") or "")]
        for item in apps
        if space is None or _space_name(item) == space
    ]
    print_table(["name", "space", "url"], rows, title="Apps")


@app.command("info")
def app_info(
    ctx: typer.Context,
    app_name: str = typer.Option(..., "--app", "-a", help="The app to show, as name-space."),
) -> None:
    """Show information about an app."""
    context = get_context(ctx)
    format_response(asyncio.run(context.api.get(f"/apps/{app_name}")))
