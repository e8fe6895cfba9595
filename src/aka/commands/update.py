"""``aka update`` -- update installed plugins and the client."""

from __future__ import annotations

import typer

from aka.context import get_context
from aka.output import success, warning
from aka.update import update


def update_command(ctx: typer.Context) -> None:
    """Update the aka client and every plugin installed from git."""
    report = update(get_context(ctx))

    if report.errors:
        warning(f"{len(report.errors)} plugin(s) failed to update: {', '.join(report.errors)}")
    if report.self_updated:
        success(f"Updated aka and {len(report.updated)} plugin(s).")
    else:
        warning("aka itself could not be updated; see the messages above.")
