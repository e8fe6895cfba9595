"""Typer application factory and CLI entry point for aka.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. It runs the startup sequence:

1. Load the configuration from the environment. Missing
   ``AKKERIS_API_HOST`` / ``AKKERIS_AUTH_HOST`` is fatal: the message says
   what to set and the process exits non-zero before anything else runs.
2. Build the shared :class:`~aka.context.Context`, reading the credential
   file once.
3. Load the built-in plugins, then the third-party plugins, into the
   context's registry.
4. Build the Typer app with :func:`build_app` -- the built-in commands
   plus one command group per plugin that exposes commands -- and run it.

:class:`~aka.exceptions.AkaError` raised by a command exits with the
error's ``exit_code``; any other exception writes a crash log under
``~/.akkeris/logs`` and exits with :data:`~aka.exit_codes.EXIT_GENERIC_FAILURE`.
"""

from __future__ import annotations

import logging
import random
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler

from aka.commands.completion import PROG_NAME, completion_command
from aka.commands.plugins import plugins_app
from aka.commands.update import update_command
from aka.commands.version import version_command
from aka.context import Context, create_context, get_context
from aka.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED, EXIT_INVALID_USAGE
from aka.output import OutputFormat, OutputManager, set_output

RESERVED_COMMANDS = frozenset({"update", "version", "completion", "plugins"})
"""Built-in command names a plugin's command group cannot take over."""

RANDOM_TIPS = (
    'Fun tip! You can use "latest" rather than a specific ID for builds and releases when getting info.',
    "Fun tip! Set API_TOKEN to run a single command as a different user.",
    'Fun tip! "aka completion >> ~/.bash_profile" enables tab completion.',
)

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Route the ``aka`` loggers to stderr, at DEBUG when *verbose* and WARNING otherwise."""
    root = logging.getLogger("aka")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


def main_callback(
    ctx: typer.Context,
    authtoken: Optional[str] = typer.Option(
        None, "--authtoken", help="Bearer token to use instead of the stored credential."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every command.

    Installs the :class:`~aka.output.OutputManager` for the command line
    flags and records ``--authtoken`` on the context. Running aka with no
    command prints the help and exits with
    :data:`~aka.exit_codes.EXIT_INVALID_USAGE`.
    """
    context = get_context(ctx)
    debug_enabled = verbose or context.config.debug

    set_output(
        OutputManager(
            format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
            no_color=no_color,
            quiet=quiet,
            verbose=debug_enabled,
        )
    )
    if verbose:
        configure_logging(True)

    if authtoken:
        context.cli_token = authtoken

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help(), err=True)
        raise typer.Exit(code=EXIT_INVALID_USAGE)


def build_app(context: Context) -> typer.Typer:
    """Create the Typer app for *context*.

    Registers the built-in commands, then mounts every plugin in
    ``context.registry`` that exposes a Typer ``app`` as a command group
    named after the plugin, in registry order.
    """
    app = typer.Typer(
        name=PROG_NAME,
        help="Usage: aka COMMAND [--app APP] [command-specific-options]",
        epilog=random.choice(RANDOM_TIPS),
        add_completion=True,
        rich_markup_mode=None,
        context_settings={"obj": context},
    )
    app.callback(invoke_without_command=True)(main_callback)

    app.command("update", help="Update the aka client and its plugins.")(update_command)
    app.command("version", help="Display version.")(version_command)
    app.command(
        "completion",
        help='Show aka auto-completion script (e.g. "aka completion >> ~/.bash_profile").',
    )(completion_command)
    app.add_typer(plugins_app, name="plugins", help="Manage aka plugins.")

    for plugin in context.registry:
        if not plugin.has_commands:
            continue
        if plugin.name in RESERVED_COMMANDS:
            logger.warning("Plugin '%s' cannot replace the built-in command of that name", plugin.name)
            continue
        app.add_typer(plugin.app, name=plugin.name, help=plugin.group)

    return app


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(logs_dir: Path) -> str:
    """Write the current traceback to ``<logs_dir>/crash-<timestamp>.log`` and return its path."""
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point invoked by the ``aka`` console script.

    Args:
        argv: Arguments without the program name; defaults to
            ``sys.argv[1:]``.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    from aka.config import is_debug, load_config
    from aka.exceptions import AkaError, ConfigError
    from aka.output import error
    from aka.plugins.loader import PluginLoader

    _setup_signal_handlers()
    configure_logging(is_debug())

    try:
        config = load_config()
    except ConfigError as exc:
        sys.stderr.write(f"\n!!! {exc}\n\n")
        sys.exit(exc.exit_code)

    try:
        context = create_context(config)
        PluginLoader(context).load_all()
        app = build_app(context)
        app(args=list(argv) if argv is not None else None, prog_name=PROG_NAME)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except AkaError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        log_path = _write_crash_log(config.logs_dir)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
