"""Terminal output for aka: data on stdout, diagnostics on stderr.

Anything a user may pipe into another tool (API payloads, tables, the
``version`` report, completion scripts) is written to stdout. Everything
else, including headings such as ``=== updating logs plugin``, plugin load
errors, and warnings, goes to stderr.

Styling follows the terminal: rich rendering when stdout is a TTY, plain
tab-separated text otherwise, and no colour at all under ``NO_COLOR``,
``TERM=dumb``, or ``--no-color``.

Commands and plugins use the module-level helpers (:func:`format_response`,
:func:`heading`, :func:`error`, ...), which write through the
:class:`OutputManager` the root callback installed with :func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, NamedTuple, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How command results are rendered.

    ``AUTO`` becomes ``RICH`` on an interactive, colour-capable terminal and
    ``PLAIN`` everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Level(NamedTuple):
    prefix: str
    markup: str
    quietable: bool
    verbose_only: bool = False


_LEVELS = {
    "heading": _Level("=== ", "[bold]===[/bold] [bold cyan]{}[/bold cyan]", True),
    "info": _Level("", "{}", True),
    "success": _Level("", "[green]{}[/green]", True),
    "suggest": _Level("→ ", "[dim]→ {}[/dim]", True),
    "warning": _Level("Warning: ", "[yellow]Warning:[/yellow] {}", False),
    "error": _Level("Error: ", "[bold red]Error:[/bold red] {}", False),
    "debug": _Level("[debug] ", "[dim]\\[debug] {}[/dim]", False, verbose_only=True),
}


class OutputManager:
    """Renders results and diagnostics for one aka invocation.

    Args:
        format: Requested :class:`OutputFormat`.
        no_color: Turn off colour and markup.
        quiet: Drop headings, info, success and suggestion messages.
            Warnings, errors and data are always written.
        verbose: Show debug messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._verbose = verbose

        if format != OutputFormat.AUTO:
            self._format = format
        elif _is_tty() and not self._no_color:
            self._format = OutputFormat.RICH
        else:
            self._format = OutputFormat.PLAIN

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # stdout

    def format_response(self, data: Any) -> None:
        """Write a decoded API response (dict, list, or scalar) to stdout."""
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json(data))
        elif self._format == OutputFormat.RICH and isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        elif self._format == OutputFormat.RICH:
            self._stdout.print(escape(str(data)))
        else:
            for line in _plain_lines(data):
                self.print_data(line)

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as a rich table, tab-separated lines, or a JSON array of objects."""
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json([dict(zip(headers, row)) for row in rows]))
            return
        if self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self.print_data("\t".join(row))
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self._stdout.print(table)

    # stderr

    def heading(self, message: str) -> None:
        self._diagnostic("heading", message)

    def info(self, message: str) -> None:
        self._diagnostic("info", message)

    def success(self, message: str) -> None:
        self._diagnostic("success", message)

    def suggest(self, message: str) -> None:
        self._diagnostic("suggest", message)

    def warning(self, message: str) -> None:
        self._diagnostic("warning", message)

    def error(self, message: str) -> None:
        self._diagnostic("error", message)

    def debug(self, message: str) -> None:
        self._diagnostic("debug", message)

    def _diagnostic(self, level_name: str, message: str) -> None:
        level = _LEVELS[level_name]
        if level.quietable and self._quiet:
            return
        if level.verbose_only and not self._verbose:
            return
        if self._no_color:
            print(f"{level.prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(level.markup.format(escape(message)))


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> list[str]:
    """Tab-separated rendering: ``key<TAB>value`` for objects, one line per list item."""
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(value) for value in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _color_disabled_by_env() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager.

    It holds on to ``sys.stdout``/``sys.stderr``, which ``CliRunner``
    replaces for every invocation.
    """
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def heading(message: str) -> None:
    get_output().heading(message)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
