"""Plugin loader -- directory scanning, import, init, and failure isolation.

:class:`PluginLoader` scans a plugin directory and, for every immediate
subdirectory that holds an ``__init__.py`` index module (in sorted order):

1. **Load phase** -- imports the package from its path. Any exception is
   recorded as a ``load`` error and the plugin is skipped; it never reaches
   the registry.
2. The plugin's :class:`~aka.plugins.base.Plugin` descriptor is added to
   the result and to ``context.registry``.
3. **Init phase** -- if the plugin declares ``init(context)``, calls it.
   Any exception is recorded as an ``init`` error, but the plugin stays
   registered: partial functionality beats invisibility.

One broken plugin never stops the scan. Every error is printed as a
one-line diagnostic and returned in :attr:`LoadResult.errors` so callers
and tests can inspect it.

:meth:`PluginLoader.load_all` scans the built-in directory first and the
third-party directory second, which is what lets a third-party plugin
replace a built-in one of the same name.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING

from aka.config import ensure_dir
from aka.exceptions import PluginError
from aka.output import error
from aka.plugins.base import Plugin, PluginSource

if TYPE_CHECKING:
    from aka.context import Context

logger = logging.getLogger(__name__)

INDEX_MODULE = "__init__.py"
"""File that marks a subdirectory as a plugin."""

MODULE_NAMESPACE = "aka_plugins"
"""Prefix of the ``sys.modules`` names plugins are imported under."""


class LoadPhase(str, Enum):
    """Stage at which a plugin failed."""

    SCAN = "scan"
    LOAD = "load"
    INIT = "init"


class LoadOutcome(str, Enum):
    """Final state of one plugin after loading."""

    LOADED = "loaded"
    LOAD_ERROR = "load_error"
    INIT_ERROR = "init_error"


@dataclass(frozen=True)
class PluginLoadError:
    """A failure recorded for one plugin (or, for ``scan``, for a whole directory)."""

    plugin_name: str
    phase: LoadPhase
    error: Exception

    def __str__(self) -> str:
        if self.phase == LoadPhase.SCAN:
            return str(self.error)
        verb = "loading" if self.phase == LoadPhase.LOAD else "initializing"
        return f'error {verb} plugin "{self.plugin_name}": {self.error}'


@dataclass
class LoadResult:
    """Everything one scan produced.

    Attributes:
        loaded: Registered plugins by name, in load order.
        errors: Recorded failures, in the order they happened.
        outcomes: ``(name, outcome)`` for every plugin processed, in order.
    """

    loaded: dict[str, Plugin] = field(default_factory=dict)
    errors: list[PluginLoadError] = field(default_factory=list)
    outcomes: list[tuple[str, LoadOutcome]] = field(default_factory=list)

    def merge(self, other: LoadResult) -> None:
        """Append *other*'s plugins and errors; same-named plugins are replaced in place."""
        self.loaded.update(other.loaded)
        self.errors.extend(other.errors)
        self.outcomes.extend(other.outcomes)


def discover_plugin_dirs(directory: Path) -> list[Path]:
    """Return the plugin subdirectories of *directory* in sorted order.

    A plugin subdirectory holds an ``__init__.py``. Files, dot directories,
    and dunder directories such as ``__pycache__`` are skipped.
    """
    found = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.name.startswith((".", "__")):
            continue
        if entry.is_dir() and (entry / INDEX_MODULE).is_file():
            found.append(entry)
    return found


def module_name_for(name: str, source: PluginSource) -> str:
    return f"{MODULE_NAMESPACE}.{source.value}.{name}"


def import_plugin_module(name: str, source: PluginSource, plugin_dir: Path) -> ModuleType:
    """Import the plugin package in *plugin_dir* from disk.

    The package is registered in :data:`sys.modules` under
    ``aka_plugins.<source>.<name>`` so that relative imports inside the
    plugin work and a built-in and a third-party plugin of the same name do
    not collide. Any previously imported copy (and its submodules) is
    dropped first, so calling this again after ``git pull`` picks up the new
    code.

    Raises:
        ImportError: If no import spec can be built for the index module.
        Exception: Whatever the plugin's own module code raises.
    """
    module_name = module_name_for(name, source)
    spec = importlib.util.spec_from_file_location(
        module_name,
        plugin_dir / INDEX_MODULE,
        submodule_search_locations=[str(plugin_dir)],
    )
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import plugin from {plugin_dir}")

    for key in [k for k in sys.modules if k == module_name or k.startswith(f"{module_name}.")]:
        del sys.modules[key]

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


class PluginLoader:
    """Loads plugin directories into a context's registry.

    Args:
        context: The shared context. Its ``registry`` receives every plugin
            that passes the load phase, and it is the argument given to each
            plugin's ``init`` hook.

    Example::

        loader = PluginLoader(context)
        result = loader.load_all()
        for failure in result.errors:
            print(failure.plugin_name, failure.phase.value)
    """

    def __init__(self, context: Context) -> None:
        self._context = context

    def load_all(self) -> LoadResult:
        """Load the built-in directory, then the third-party directory."""
        config = self._context.config
        result = self.load(config.plugins_dir, PluginSource.BUILTIN)
        result.merge(self.load(config.third_party_plugins_dir, PluginSource.THIRD_PARTY))
        return result

    def load(self, directory: Path, source: PluginSource) -> LoadResult:
        """Load every plugin in *directory*.

        Args:
            directory: Plugin directory; created if missing.
            source: Tag recorded on each loaded plugin.

        Returns:
            The :class:`LoadResult` for this directory. An unusable
            directory yields an empty result with a single ``scan`` error.
        """
        result = LoadResult()

        try:
            usable = ensure_dir(directory)
            plugin_dirs = discover_plugin_dirs(directory) if usable else []
        except OSError as exc:
            logger.debug("Cannot list %s: %s", directory, exc)
            usable, plugin_dirs = False, []
        if not usable:
            self._fail(
                result,
                "",
                LoadPhase.SCAN,
                PluginError(
                    "The plugins directory cannot be accessed, could not be created, "
                    f"or is a file ({directory})."
                ),
            )
            return result

        for plugin_dir in plugin_dirs:
            name = plugin_dir.name
            try:
                module = import_plugin_module(name, source, plugin_dir)
                plugin = Plugin.from_module(name, source, module, path=plugin_dir)
            except Exception as exc:
                self._fail(result, name, LoadPhase.LOAD, exc)
                result.outcomes.append((name, LoadOutcome.LOAD_ERROR))
                continue

            result.loaded[name] = plugin
            self._context.registry.register(plugin)

            if plugin.has_init:
                try:
                    plugin.init(self._context)
                except Exception as exc:
                    self._fail(result, name, LoadPhase.INIT, exc)
                    result.outcomes.append((name, LoadOutcome.INIT_ERROR))
                    continue

            result.outcomes.append((name, LoadOutcome.LOADED))
            logger.debug("Loaded %s plugin '%s' from %s", source.value, name, plugin_dir)

        return result

    @staticmethod
    def _fail(result: LoadResult, name: str, phase: LoadPhase, exc: Exception) -> None:
        failure = PluginLoadError(plugin_name=name, phase=phase, error=exc)
        result.errors.append(failure)
        logger.debug("Plugin %s failed during %s", name or "directory", phase.value, exc_info=exc)
        error(str(failure))
