"""``aka completion`` -- print the shell completion script.

The script comes from the completion classes Typer registers with Click, so
it always matches what the installed ``aka`` answers at completion time::

    aka completion >> ~/.bash_profile
    aka completion zsh > ~/.zfunc/_aka
"""

from __future__ import annotations

import typer
from click.shell_completion import get_completion_class

from aka.output import error, print_data

PROG_NAME = "aka"
COMPLETE_VAR = "_AKA_COMPLETE"
SUPPORTED_SHELLS = ("bash", "zsh", "fish", "powershell")


def completion_command(
    ctx: typer.Context,
    shell: str = typer.Argument(
        "bash",
        help="Shell to print the completion script for (bash, zsh, fish, powershell).",
    ),
) -> None:
    """Show the aka auto-completion script (e.g. "aka completion >> ~/.bash_profile")."""
    shell = shell.lower()
    completion_class = get_completion_class(shell) if shell in SUPPORTED_SHELLS else None
    if completion_class is None:
        error(f"Unsupported shell: {shell}. Supported: {', '.join(SUPPORTED_SHELLS)}")
        raise typer.Exit(code=2)

    root = ctx.find_root()
    completion = completion_class(root.command, {}, PROG_NAME, COMPLETE_VAR)
    print_data(completion.source())
