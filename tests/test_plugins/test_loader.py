"""Tests for plugin discovery, loading, init, and failure isolation."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from aka.plugins.base import PluginSource
from aka.plugins.loader import (
    LoadOutcome,
    LoadPhase,
    PluginLoader,
    discover_plugin_dirs,
    import_plugin_module,
    module_name_for,
)

GOOD = """
group = "{group}"
"""

RECORDING = """
group = "{group}"

def init(context):
    context.seen = getattr(context, "seen", []) + ["{name}"]
"""


@pytest.fixture
def loader(context, quiet_output) -> PluginLoader:
    return PluginLoader(context)


class TestDiscovery:
    def test_sorted_and_filtered(self, tmp_path: Path, write_plugin) -> None:
        for name in ("zeta", "alpha", "mid"):
            write_plugin(tmp_path, name)
        (tmp_path / "no_index").mkdir()
        (tmp_path / "__pycache__").mkdir()
        (tmp_path / "__pycache__" / "__init__.py").write_text("")
        write_plugin(tmp_path, ".hidden")
        (tmp_path / "loose.py").write_text("")

        assert [p.name for p in discover_plugin_dirs(tmp_path)] == ["alpha", "mid", "zeta"]


class TestLoad:
    def test_loads_every_plugin_in_order(self, loader, context, builtin_dir, write_plugin) -> None:
        for index, name in enumerate(("one", "two", "three")):
            write_plugin(builtin_dir, f"{index}_{name}", RECORDING.format(group=name, name=name))

        result = loader.load(builtin_dir, PluginSource.BUILTIN)

        assert result.errors == []
        assert list(result.loaded) == ["0_one", "1_two", "2_three"]
        assert context.registry.names() == ["0_one", "1_two", "2_three"]
        assert context.seen == ["one", "two", "three"]
        assert all(outcome == LoadOutcome.LOADED for _name, outcome in result.outcomes)

    def test_load_error_is_isolated(self, loader, context, builtin_dir, write_plugin, capsys) -> None:
        write_plugin(builtin_dir, "a_good", GOOD.format(group="Good"))
        write_plugin(builtin_dir, "b_broken", "raise RuntimeError('kaboom')\n")
        write_plugin(builtin_dir, "c_after", GOOD.format(group="After"))

        result = loader.load(builtin_dir, PluginSource.BUILTIN)

        assert context.registry.names() == ["a_good", "c_after"]
        assert len(result.errors) == 1
        failure = result.errors[0]
        assert failure.plugin_name == "b_broken"
        assert failure.phase == LoadPhase.LOAD
        assert str(failure) == 'error loading plugin "b_broken": kaboom'
        assert ("b_broken", LoadOutcome.LOAD_ERROR) in result.outcomes
        assert 'error loading plugin "b_broken"' in capsys.readouterr().err
        assert module_name_for("b_broken", PluginSource.BUILTIN) not in sys.modules

    def test_syntax_error_is_a_load_error(self, loader, builtin_dir, write_plugin) -> None:
        write_plugin(builtin_dir, "bad", "def broken(:\n")
        result = loader.load(builtin_dir, PluginSource.BUILTIN)
        assert [e.phase for e in result.errors] == [LoadPhase.LOAD]

    def test_invalid_descriptor_is_a_load_error(self, loader, context, builtin_dir, write_plugin) -> None:
        write_plugin(builtin_dir, "bad", "app = 'not a typer app'\n")
        result = loader.load(builtin_dir, PluginSource.BUILTIN)
        assert result.errors[0].phase == LoadPhase.LOAD
        assert "bad" not in context.registry

    def test_init_error_keeps_plugin_registered(
        self, loader, context, builtin_dir, write_plugin, capsys
    ) -> None:
        write_plugin(
            builtin_dir,
            "flaky",
            """
            group = "Flaky"

            def init(context):
                raise ValueError("no network")
            """,
        )
        write_plugin(builtin_dir, "steady", GOOD.format(group="Steady"))

        result = loader.load(builtin_dir, PluginSource.BUILTIN)

        assert context.registry.names() == ["flaky", "steady"]
        assert result.errors[0].phase == LoadPhase.INIT
        assert str(result.errors[0]) == 'error initializing plugin "flaky": no network'
        assert result.outcomes == [
            ("flaky", LoadOutcome.INIT_ERROR),
            ("steady", LoadOutcome.LOADED),
        ]
        assert 'error initializing plugin "flaky"' in capsys.readouterr().err

    def test_missing_directory_is_created(self, loader, tmp_path) -> None:
        target = tmp_path / "new" / "plugins"
        result = loader.load(target, PluginSource.THIRD_PARTY)
        assert result.errors == []
        assert target.is_dir()

    def test_directory_that_is_a_file_is_a_scan_error(self, loader, context, tmp_path) -> None:
        target = tmp_path / "plugins"
        target.write_text("oops")

        result = loader.load(target, PluginSource.THIRD_PARTY)

        assert len(result.errors) == 1
        assert result.errors[0].phase == LoadPhase.SCAN
        assert "is a file" in str(result.errors[0])
        assert len(context.registry) == 0

    def test_relative_imports_inside_plugin(self, loader, context, builtin_dir, write_plugin) -> None:
        write_plugin(
            builtin_dir,
            "split",
            "from .helpers import GROUP as group\n",
            extra={"helpers.py": "GROUP = 'Split'\n"},
        )
        loader.load(builtin_dir, PluginSource.BUILTIN)
        assert context.registry.get("split").group == "Split"


class TestLoadAll:
    def test_third_party_overrides_builtin(self, loader, context, config, write_plugin) -> None:
        write_plugin(config.plugins_dir, "apps", GOOD.format(group="Apps"))
        write_plugin(config.plugins_dir, "auth", GOOD.format(group="Auth"))
        write_plugin(config.third_party_plugins_dir, "apps", GOOD.format(group="Better Apps"))

        result = loader.load_all()

        assert result.errors == []
        assert context.registry.names() == ["apps", "auth"]
        apps = context.registry.get("apps")
        assert apps.group == "Better Apps"
        assert apps.source == PluginSource.THIRD_PARTY
        assert list(result.loaded) == ["apps", "auth"]
        assert [p.group for p in context.registry] == ["Better Apps", "Auth"]

    def test_builtin_and_third_party_modules_do_not_collide(self, config, write_plugin) -> None:
        write_plugin(config.plugins_dir, "dup", GOOD.format(group="Builtin"))
        write_plugin(config.third_party_plugins_dir, "dup", GOOD.format(group="Third"))
        builtin = import_plugin_module("dup", PluginSource.BUILTIN, config.plugins_dir / "dup")
        third = import_plugin_module(
            "dup", PluginSource.THIRD_PARTY, config.third_party_plugins_dir / "dup"
        )
        assert builtin.group == "Builtin"
        assert third.group == "Third"


class TestReimport:
    def test_reimport_picks_up_changes(self, tmp_path, write_plugin) -> None:
        plugin_dir = write_plugin(tmp_path, "live", "value = 1\n")
        assert import_plugin_module("live", PluginSource.THIRD_PARTY, plugin_dir).value == 1
        (plugin_dir / "__init__.py").write_text("value = 22\n")
        assert import_plugin_module("live", PluginSource.THIRD_PARTY, plugin_dir).value == 22
