"""Tests for the plugin registry and descriptor."""

from __future__ import annotations

import types

import pytest
import typer

from aka.exceptions import PluginError
from aka.plugins.base import Plugin, PluginSource
from aka.plugins.registry import PluginRegistry


def _plugin(name: str, source: PluginSource = PluginSource.BUILTIN, **kwargs) -> Plugin:
    return Plugin(name=name, source=source, group=kwargs.pop("group", name.title()), **kwargs)


class TestRegistry:
    def test_iteration_is_registration_order(self) -> None:
        registry = PluginRegistry()
        for name in ("apps", "auth", "logs"):
            registry.register(_plugin(name))
        assert [p.name for p in registry] == ["apps", "auth", "logs"]
        assert registry.names() == ["apps", "auth", "logs"]
        assert len(registry) == 3

    def test_replacement_returns_previous_and_keeps_position(self) -> None:
        registry = PluginRegistry()
        builtin = _plugin("apps")
        registry.register(builtin)
        registry.register(_plugin("auth"))

        replacement = _plugin("apps", PluginSource.THIRD_PARTY, group="Better Apps")
        assert registry.register(replacement) is builtin

        assert registry.names() == ["apps", "auth"]
        assert registry.get("apps") is replacement
        assert len(registry) == 2

    def test_get_missing(self) -> None:
        with pytest.raises(PluginError, match="not loaded"):
            PluginRegistry().get("nope")

    def test_contains(self) -> None:
        registry = PluginRegistry()
        registry.register(_plugin("apps"))
        assert "apps" in registry
        assert "auth" not in registry

    def test_iteration_is_a_snapshot(self) -> None:
        registry = PluginRegistry()
        registry.register(_plugin("apps"))
        for _plugin_entry in registry:
            registry.register(_plugin("late"))
        assert registry.names() == ["apps", "late"]


class TestPluginFromModule:
    def test_defaults(self) -> None:
        module = types.ModuleType("bare")
        plugin = Plugin.from_module("bare", PluginSource.BUILTIN, module)
        assert plugin.group == "bare"
        assert plugin.version is None
        assert not (plugin.has_init or plugin.has_update or plugin.has_commands)

    def test_capabilities(self) -> None:
        calls = []
        module = types.ModuleType("full")
        module.group = "Full"
        module.version = "1.2.3"
        module.app = typer.Typer()
        module.init = lambda context: calls.append(("init", context))
        module.update = lambda context: calls.append(("update", context))

        plugin = Plugin.from_module("full", PluginSource.THIRD_PARTY, module)
        assert plugin.has_init and plugin.has_update and plugin.has_commands
        plugin.init("ctx")
        plugin.update("ctx")
        assert calls == [("init", "ctx"), ("update", "ctx")]

    def test_hooks_absent_are_noops(self) -> None:
        plugin = Plugin.from_module("bare", PluginSource.BUILTIN, types.ModuleType("bare"))
        plugin.init("ctx")
        plugin.update("ctx")

    @pytest.mark.parametrize(
        "attr,value",
        [("group", 42), ("version", 1.0), ("app", "not typer"), ("init", "not callable")],
    )
    def test_bad_attributes(self, attr, value) -> None:
        module = types.ModuleType("bad")
        setattr(module, attr, value)
        with pytest.raises(PluginError, match=attr):
            Plugin.from_module("bad", PluginSource.BUILTIN, module)
