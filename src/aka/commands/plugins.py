"""``aka plugins`` -- list, install, and uninstall third-party plugins.

Third-party plugins are git checkouts under ``~/.akkeris/plugins``:

* ``plugins install <url>`` clones the repository there and checks that it
  imports as a plugin, removing the checkout again if it does not;
* ``plugins uninstall <name>`` deletes the checkout;
* ``plugins list`` shows every loaded plugin, built-in and third-party.

Newly installed plugins are picked up the next time aka starts.
"""

from __future__ import annotations

import re
import shutil
import subprocess
from pathlib import Path
from typing import Optional

import typer

from aka.context import Context, get_context
from aka.exceptions import PluginError
from aka.output import print_table, success, suggest
from aka.plugins.base import Plugin, PluginSource
from aka.plugins.loader import INDEX_MODULE, import_plugin_module
from aka.update import Runner, run_command

plugins_app = typer.Typer(no_args_is_help=True)
"""Typer application for the ``plugins`` command group."""

_VALID_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def plugin_name_from_url(url: str) -> str:
    """Derive a plugin directory name from a repository URL.

    ``https://github.com/org/aka-logs.git`` -> ``aka-logs``.
    """
    tail = url.rstrip("/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    return tail


def _plugin_dir(context: Context, name: str) -> Path:
    if not _VALID_NAME.match(name):
        raise PluginError(f"Invalid plugin name: {name!r}")
    return context.config.third_party_plugins_dir / name


def install_plugin(
    context: Context,
    url: str,
    name: Optional[str] = None,
    run: Runner = subprocess.run,
) -> Plugin:
    """Clone *url* into the third-party plugin directory and validate it.

    Returns:
        The descriptor of the installed plugin. Its ``init`` hook is not run;
        that happens on the next start.

    Raises:
        PluginError: If the name is invalid or taken, the clone fails, or
            the checkout is not an importable plugin.
    """
    name = name or plugin_name_from_url(url)
    target = _plugin_dir(context, name)
    if target.exists():
        raise PluginError(f'Plugin "{name}" is already installed at {target}')

    target.parent.mkdir(parents=True, exist_ok=True)
    if not run_command(run, ["git", "clone", "--quiet", "--", url, str(target)]):
        shutil.rmtree(target, ignore_errors=True)
        raise PluginError(f"Could not clone {url}")

    if not (target / INDEX_MODULE).is_file():
        shutil.rmtree(target, ignore_errors=True)
        raise PluginError(f"{url} is not an aka plugin (no {INDEX_MODULE})")

    try:
        module = import_plugin_module(name, PluginSource.THIRD_PARTY, target)
        return Plugin.from_module(name, PluginSource.THIRD_PARTY, module, path=target)
    except Exception as exc:
        shutil.rmtree(target, ignore_errors=True)
        raise PluginError(f'error loading plugin "{name}": {exc}') from exc


def uninstall_plugin(context: Context, name: str) -> Path:
    """Delete the checkout of third-party plugin *name*.

    Raises:
        PluginError: If no such third-party plugin is installed.
    """
    target = _plugin_dir(context, name)
    if not target.is_dir():
        raise PluginError(f'Plugin "{name}" is not installed in {target.parent}')
    shutil.rmtree(target)
    return target


@plugins_app.command("list")
def list_plugins(ctx: typer.Context) -> None:
    """List loaded plugins."""
    context = get_context(ctx)
    rows = [
        [plugin.name, plugin.group, plugin.version or "", plugin.source.value]
        for plugin in context.registry
    ]
    print_table(["name", "group", "version", "source"], rows, title="Plugins")


@plugins_app.command("install")
def install_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Git URL of the plugin repository."),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Directory name to install as (defaults to the repository name)."
    ),
) -> None:
    """Install a plugin from a git repository."""
    plugin = install_plugin(get_context(ctx), url, name=name)
    success(f'Installed plugin "{plugin.name}" ({plugin.group})')
    suggest("Run aka --help to see its commands.")


@plugins_app.command("uninstall")
def uninstall_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the installed plugin."),
) -> None:
    """Remove an installed plugin."""
    uninstall_plugin(get_context(ctx), name)
    success(f'Removed plugin "{name}"')
