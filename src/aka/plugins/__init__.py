"""Plugin system for aka -- descriptors, registry, and directory loading.

Plugins are Python packages living in one of two directories:

* the built-in directory next to this module, for plugins shipped with the
  client (``apps``, ``auth``);
* ``~/.akkeris/plugins``, for plugins the user installed with
  ``aka plugins install``.

Key classes:

* :class:`Plugin` -- frozen descriptor of one loaded plugin package.
* :class:`PluginRegistry` -- ordered name -> plugin mapping.
* :class:`PluginLoader` -- scans directories, imports and initialises
  plugins, and isolates their failures.
* :class:`LoadResult` -- what a scan loaded and which plugins failed.
"""

from aka.plugins.base import Plugin, PluginSource
from aka.plugins.loader import LoadOutcome, LoadPhase, LoadResult, PluginLoadError, PluginLoader
from aka.plugins.registry import PluginRegistry

__all__ = [
    "LoadOutcome",
    "LoadPhase",
    "LoadResult",
    "Plugin",
    "PluginLoadError",
    "PluginLoader",
    "PluginRegistry",
    "PluginSource",
]
