"""Ordered registry of loaded plugins."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from aka.exceptions import PluginError
from aka.plugins.base import Plugin

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Mapping of plugin name to :class:`~aka.plugins.base.Plugin`, in load order.

    Built-in plugins are registered before third-party ones, so a
    third-party plugin with the same name as a built-in replaces it.
    A replacement takes over the position of the entry it replaces, so
    iteration order is the order in which each name was first registered.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, Plugin] = {}

    def register(self, plugin: Plugin) -> Optional[Plugin]:
        """Add *plugin*, replacing any plugin with the same name.

        Returns:
            The replaced plugin, or ``None``.
        """
        previous = self._plugins.get(plugin.name)
        self._plugins[plugin.name] = plugin
        if previous is not None:
            logger.debug(
                "Plugin '%s' (%s) replaces the %s plugin of the same name",
                plugin.name,
                plugin.source.value,
                previous.source.value,
            )
        return previous

    def get(self, name: str) -> Plugin:
        """Return the plugin registered as *name*.

        Raises:
            PluginError: If no such plugin is registered.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginError(f"Plugin '{name}' is not loaded") from None

    def names(self) -> list[str]:
        return list(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __iter__(self) -> Iterator[Plugin]:
        return iter(list(self._plugins.values()))

    def __len__(self) -> int:
        return len(self._plugins)
