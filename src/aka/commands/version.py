"""``aka version`` -- client version, platform, and installed plugins."""

from __future__ import annotations

import platform
import sys

import typer

from aka.context import Context, get_context
from aka.output import print_data


def version_lines(context: Context) -> list[str]:
    """Return the lines of the version report.

    The first line is ``akkeris/<version> <arch>-<platform> python-<version>``,
    followed by a heading and one line per registered plugin in registry
    order: its group, plus ``@<version>`` when the plugin declares one.
    """
    lines = [
        f"akkeris/{context.config.package.version} "
        f"{platform.machine() or 'unknown'}-{sys.platform} "
        f"python-{platform.python_version()}",
        "=== Installed Plugins",
    ]
    for plugin in context.registry:
        if plugin.version:
            lines.append(f"{plugin.group} @{plugin.version}")
        else:
            lines.append(plugin.group)
    return lines


def version_command(ctx: typer.Context) -> None:
    """Display the client version and the installed plugins."""
    for line in version_lines(get_context(ctx)):
        print_data(line)
