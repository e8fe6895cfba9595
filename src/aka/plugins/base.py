"""Plugin descriptor built from a plugin package on disk.

A plugin is a directory holding a Python package (an ``__init__.py`` index
module). The package may expose any of the following module attributes:

* ``group`` -- display name used by ``aka version`` and as the help text of
  the plugin's command group. Defaults to the directory name.
* ``version`` -- optional version string.
* ``app`` -- a :class:`typer.Typer` with the plugin's commands, mounted on
  the root CLI under the plugin's name.
* ``init(context)`` -- called once after the plugin is registered.
* ``update(context)`` -- called by ``aka update`` after the plugin's
  checkout has been pulled.

:meth:`Plugin.from_module` reads these attributes once and freezes them into
a :class:`Plugin`. Hooks are only ever invoked through :meth:`Plugin.init`
and :meth:`Plugin.update`, which check the capability flags first.

Example plugin package (``~/.akkeris/plugins/hello/__init__.py``)::

    import typer

    group = "Hello"
    version = "1.0.0"
    app = typer.Typer()

    @app.command()
    def world() -> None:
        typer.echo("hello, world")

    def init(context) -> None:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any, Callable, Optional

import typer

from aka.exceptions import PluginError

if TYPE_CHECKING:
    from aka.context import Context

Hook = Callable[["Context"], Any]


class PluginSource(str, Enum):
    """Where a plugin was loaded from."""

    BUILTIN = "builtin"
    THIRD_PARTY = "third_party"


@dataclass(frozen=True)
class Plugin:
    """A loaded plugin.

    Attributes:
        name: Directory name; the registry key and the command group name.
        source: :attr:`PluginSource.BUILTIN` or :attr:`PluginSource.THIRD_PARTY`.
        group: Display name.
        version: Optional version string.
        path: Directory the plugin was loaded from.
        app: Optional Typer command surface.
        init_hook: Optional ``init(context)`` callable.
        update_hook: Optional ``update(context)`` callable.
    """

    name: str
    source: PluginSource
    group: str
    version: Optional[str] = None
    path: Optional[Path] = None
    app: Optional[typer.Typer] = None
    init_hook: Optional[Hook] = None
    update_hook: Optional[Hook] = None

    @property
    def has_init(self) -> bool:
        return self.init_hook is not None

    @property
    def has_update(self) -> bool:
        return self.update_hook is not None

    @property
    def has_commands(self) -> bool:
        return self.app is not None

    def init(self, context: Context) -> None:
        """Run the plugin's ``init`` hook if it declares one."""
        if self.init_hook is not None:
            self.init_hook(context)

    def update(self, context: Context) -> None:
        """Run the plugin's ``update`` hook if it declares one."""
        if self.update_hook is not None:
            self.update_hook(context)

    @classmethod
    def from_module(
        cls,
        name: str,
        source: PluginSource,
        module: ModuleType,
        path: Optional[Path] = None,
    ) -> Plugin:
        """Build a descriptor from an imported plugin package.

        Args:
            name: The plugin's directory name.
            source: Which plugin directory it came from.
            module: The imported index module.
            path: The plugin directory.

        Raises:
            PluginError: If an exposed attribute has the wrong type (a
                non-callable ``init``/``update``, a non-Typer ``app``, or a
                non-string ``group``/``version``).
        """
        group = getattr(module, "group", None) or name
        if not isinstance(group, str):
            raise PluginError(f"'group' must be a string, got {type(group).__name__}")

        version = getattr(module, "version", None)
        if version is not None and not isinstance(version, str):
            raise PluginError(f"'version' must be a string, got {type(version).__name__}")

        app = getattr(module, "app", None)
        if app is not None and not isinstance(app, typer.Typer):
            raise PluginError(f"'app' must be a typer.Typer, got {type(app).__name__}")

        return cls(
            name=name,
            source=source,
            group=group,
            version=version,
            path=path,
            app=app,
            init_hook=_hook(module, "init"),
            update_hook=_hook(module, "update"),
        )


def _hook(module: ModuleType, attr: str) -> Optional[Hook]:
    hook = getattr(module, attr, None)
    if hook is None:
        return None
    if not callable(hook):
        raise PluginError(f"'{attr}' must be callable, got {type(hook).__name__}")
    return hook
