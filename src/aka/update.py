"""Update orchestrator -- pull third-party plugins, run their update hooks, update the client.

:func:`update` walks ``~/.akkeris/plugins`` in sorted order. For each entry
that is a git checkout it:

1. runs ``git pull --quiet`` in the plugin directory, attached to the
   console;
2. re-imports the plugin package from disk and, if it declares
   ``update(context)``, calls it.

Entries that are not git checkouts are skipped, and so are entries whose
``.git`` cannot be inspected at all (for example a permission error); both
are logged at debug level. A failing pull, import, or hook is reported as a
one-line diagnostic and the loop moves on to the next plugin.

After the plugins, the client updates itself: a git checkout of the client
is pulled and reinstalled in place, a regular installation is upgraded from
the package index. External-process failures are reported, never raised.

The process runner is a parameter (``subprocess.run`` by default) so tests
can record the commands instead of running git and pip.
"""

from __future__ import annotations

import logging
import stat
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Sequence

import aka
from aka.output import debug, error, heading, warning
from aka.plugins.base import Plugin, PluginSource
from aka.plugins.loader import INDEX_MODULE, import_plugin_module

if TYPE_CHECKING:
    from aka.context import Context

logger = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess"]


@dataclass
class UpdateReport:
    """What one ``aka update`` run did.

    Attributes:
        updated: Plugins that were pulled, in order.
        hooks_run: Plugins whose ``update`` hook completed.
        skipped: Entries that are not git checkouts (or could not be inspected).
        errors: Plugin name -> the exception raised while re-importing it or
            running its ``update`` hook.
        self_updated: Whether every client self-update step succeeded.
    """

    updated: list[str] = field(default_factory=list)
    hooks_run: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: dict[str, Exception] = field(default_factory=dict)
    self_updated: bool = False


def install_root() -> Path:
    """Return the directory the client is installed from.

    For a source checkout (``<root>/src/aka``) this is ``<root>``.
    """
    return Path(aka.__file__).resolve().parent.parent.parent


def is_checkout(path: Path) -> bool:
    """Return True when *path* contains a ``.git`` directory.

    Raises:
        OSError: If ``.git`` exists but cannot be inspected.
    """
    try:
        mode = (path / ".git").stat().st_mode
    except (FileNotFoundError, NotADirectoryError):
        return False
    return stat.S_ISDIR(mode)


def run_command(run: Runner, args: Sequence[str], cwd: Optional[Path] = None) -> bool:
    """Run an external command attached to the console.

    Returns:
        ``True`` if the command ran and exited with status 0. Missing
        executables and non-zero exits are reported as warnings.
    """
    logger.debug("Running %s in %s", " ".join(args), cwd or Path.cwd())
    try:
        completed = run(list(args), cwd=str(cwd) if cwd else None, check=False)
    except OSError as exc:
        warning(f"could not run {args[0]}: {exc}")
        return False
    if completed.returncode != 0:
        warning(f"{' '.join(args)} exited with status {completed.returncode}")
        return False
    return True


def update_plugins(context: Context, run: Runner = subprocess.run) -> UpdateReport:
    """Pull every third-party plugin checkout and run its ``update`` hook.

    Args:
        context: The shared context; passed to each ``update`` hook.
        run: Process runner with the :func:`subprocess.run` signature.

    Returns:
        An :class:`UpdateReport` (``self_updated`` is left ``False``).
    """
    report = UpdateReport()
    plugins_dir = context.config.third_party_plugins_dir

    try:
        entries = sorted(plugins_dir.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        debug(f"cannot list {plugins_dir}: {exc}")
        logger.debug("Cannot list %s", plugins_dir, exc_info=exc)
        return report

    for entry in entries:
        name = entry.name
        try:
            checkout = entry.is_dir() and is_checkout(entry)
        except OSError as exc:
            debug(f"skipping {name}: {exc}")
            logger.debug("Cannot inspect %s", entry, exc_info=exc)
            report.skipped.append(name)
            continue
        if not checkout:
            debug(f"skipping {name}: not a git checkout")
            report.skipped.append(name)
            continue

        heading(f"updating {name} plugin")
        run_command(run, ["git", "pull", "--quiet"], cwd=entry)
        report.updated.append(name)

        if not (entry / INDEX_MODULE).is_file():
            debug(f"{name} has no {INDEX_MODULE}, not running an update hook")
            continue

        try:
            module = import_plugin_module(name, PluginSource.THIRD_PARTY, entry)
            plugin = Plugin.from_module(name, PluginSource.THIRD_PARTY, module, path=entry)
            if plugin.has_update:
                plugin.update(context)
                report.hooks_run.append(name)
        except Exception as exc:
            report.errors[name] = exc
            logger.debug("Update of plugin %s failed", name, exc_info=exc)
            error(f'error updating plugin "{name}": {exc}')

    return report


def update_self(context: Context, run: Runner = subprocess.run, root: Optional[Path] = None) -> bool:
    """Update the client itself.

    A git checkout at *root* is pulled and reinstalled in editable mode;
    anything else is upgraded from the package index.

    Returns:
        ``True`` if every step succeeded.
    """
    root = root or install_root()
    heading("updating aka")
    pip = [sys.executable, "-m", "pip", "install", "--quiet"]

    try:
        checkout = is_checkout(root)
    except OSError as exc:
        logger.debug("Cannot inspect %s", root, exc_info=exc)
        checkout = False

    if checkout:
        pulled = run_command(run, ["git", "pull", "--quiet"], cwd=root)
        installed = run_command(run, [*pip, "-e", str(root)], cwd=root)
        return pulled and installed
    return run_command(run, [*pip, "--upgrade", context.config.package.name])


def update(context: Context, run: Runner = subprocess.run) -> UpdateReport:
    """Update all third-party plugins, then the client. Never raises for plugin failures."""
    report = update_plugins(context, run=run)
    report.self_updated = update_self(context, run=run)
    return report
