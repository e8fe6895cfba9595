"""End-to-end tests of the aka command line through Typer's CliRunner."""

from __future__ import annotations

import sys

import httpx
import pytest
from typer.testing import CliRunner

from aka.app import build_app, main
from aka.client.http_client import HttpClient
from aka.config import load_config
from aka.context import Context
from aka.plugins.base import PluginSource
from aka.plugins.loader import PluginLoader

HELLO = """
import typer

group = "Hello"
version = "2.0.1"
app = typer.Typer()


@app.command()
def world() -> None:
    typer.echo("hello, world")
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def real_context(isolated_env) -> Context:
    """A context with the real built-in plugins loaded."""
    context = Context(config=load_config())
    PluginLoader(context).load_all()
    return context


def _stdout_lines(result) -> list[str]:
    return [line for line in result.stdout.splitlines() if line]


class TestVersion:
    def test_lists_each_plugin_once_in_order(self, runner, real_context, write_plugin) -> None:
        write_plugin(real_context.config.third_party_plugins_dir, "hello", HELLO)
        PluginLoader(real_context).load(real_context.config.third_party_plugins_dir, PluginSource.THIRD_PARTY)

        result = runner.invoke(build_app(real_context), ["version"])

        assert result.exit_code == 0
        lines = _stdout_lines(result)
        assert lines[0].startswith(f"akkeris/{real_context.config.package.version} ")
        assert f"-{sys.platform} python-" in lines[0]
        assert lines[1] == "=== Installed Plugins"
        assert lines[2:] == ["Apps", "Auth", "Hello @2.0.1"]

    def test_override_keeps_builtin_position(self, runner, isolated_env, write_plugin) -> None:
        config = load_config()
        write_plugin(config.third_party_plugins_dir, "apps", 'group = "Better Apps"\nversion = "9.0"\n')
        context = Context(config=config)
        PluginLoader(context).load_all()

        result = runner.invoke(build_app(context), ["version"])

        assert result.exit_code == 0
        assert _stdout_lines(result)[2:] == ["Better Apps @9.0", "Auth"]


class TestUsage:
    def test_no_arguments_exits_2(self, runner, real_context) -> None:
        result = runner.invoke(build_app(real_context), [])
        assert result.exit_code == 2

    def test_unknown_command_exits_2(self, runner, real_context) -> None:
        result = runner.invoke(build_app(real_context), ["does-not-exist"])
        assert result.exit_code == 2

    def test_help_lists_plugin_groups(self, runner, real_context) -> None:
        result = runner.invoke(build_app(real_context), ["--help"])
        assert result.exit_code == 0
        for name in ("apps", "auth", "plugins", "version", "update", "completion"):
            assert name in result.stdout


class TestCompletion:
    def test_bash_script(self, runner, real_context) -> None:
        result = runner.invoke(build_app(real_context), ["completion"])
        assert result.exit_code == 0
        assert "_AKA_COMPLETE" in result.stdout

    def test_unsupported_shell(self, runner, real_context) -> None:
        result = runner.invoke(build_app(real_context), ["completion", "tcsh"])
        assert result.exit_code == 2


class TestPluginCommands:
    def test_third_party_commands_are_mounted(self, runner, real_context, write_plugin) -> None:
        write_plugin(real_context.config.third_party_plugins_dir, "hello", HELLO)
        PluginLoader(real_context).load_all()

        result = runner.invoke(build_app(real_context), ["hello", "world"])

        assert result.exit_code == 0
        assert "hello, world" in result.stdout

    def test_plugin_cannot_take_a_builtin_name(self, runner, real_context, write_plugin) -> None:
        write_plugin(real_context.config.third_party_plugins_dir, "version", HELLO)
        PluginLoader(real_context).load_all()

        result = runner.invoke(build_app(real_context), ["version"])

        assert result.exit_code == 0
        assert "=== Installed Plugins" in result.stdout

    def test_plugins_list(self, runner, real_context) -> None:
        result = runner.invoke(build_app(real_context), ["plugins", "list"])
        assert result.exit_code == 0
        rows = [line.split("\t") for line in _stdout_lines(result)]
        assert rows[0] == ["name", "group", "version", "source"]
        assert [row[0] for row in rows[1:]] == ["apps", "auth"]

    def test_plugins_uninstall(self, runner, real_context) -> None:
        target = real_context.config.third_party_plugins_dir / "logs"
        target.mkdir(parents=True)
        result = runner.invoke(build_app(real_context), ["plugins", "uninstall", "logs"])
        assert result.exit_code == 0
        assert not target.exists()


class TestBuiltinPlugins:
    @pytest.fixture
    def api_context(self, real_context):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/apps":
                return httpx.Response(
                    200,
                    json=[
                        {"name": "web-default", "space": {"name": "default"}, "web_url": "https://web"},
                        {"name": "api-prod", "space": {"name": "prod"}, "web_url": None},
                    ],
                )
            if request.url.path == "/apps/web-default":
                return httpx.Response(200, json={"name": "web-default", "id": "abc"})
            if request.url.path == "/account":
                return httpx.Response(200, json={"email": "me@example.io"})
            return httpx.Response(404, json={"message": "not found"})

        real_context.http = HttpClient(transport=httpx.MockTransport(handler))
        real_context.__post_init__()
        return real_context

    def test_apps_list_filtered(self, runner, api_context) -> None:
        result = runner.invoke(build_app(api_context), ["apps", "list", "--space", "prod"])
        assert result.exit_code == 0
        rows = _stdout_lines(result)
        assert rows[0] == "name\tspace\turl"
        assert rows[1:] == ["api-prod\tprod\t"]

    def test_apps_info(self, runner, api_context) -> None:
        result = runner.invoke(build_app(api_context), ["apps", "info", "-a", "web-default"])
        assert result.exit_code == 0
        assert "id\tabc" in result.stdout

    def test_apps_info_json(self, runner, api_context) -> None:
        result = runner.invoke(build_app(api_context), ["--json", "apps", "info", "-a", "web-default"])
        assert result.exit_code == 0
        assert '"id": "abc"' in result.stdout

    def test_auth_whoami(self, runner, api_context) -> None:
        result = runner.invoke(build_app(api_context), ["auth", "whoami"])
        assert result.exit_code == 0
        assert "me@example.io" in result.stdout

    def test_auth_token_from_flag(self, runner, real_context) -> None:
        result = runner.invoke(build_app(real_context), ["--authtoken", "abc", "auth", "token"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "Bearer abc"

    def test_auth_token_from_environment(self, runner, real_context, monkeypatch) -> None:
        monkeypatch.setenv("API_TOKEN", "envtok")
        result = runner.invoke(build_app(real_context), ["--authtoken", "abc", "auth", "token"])
        assert result.stdout.strip() == "Bearer envtok"


class TestMain:
    @pytest.fixture(autouse=True)
    def _keep_sigint(self, monkeypatch) -> None:
        monkeypatch.setattr("aka.app._setup_signal_handlers", lambda: None)

    def test_missing_environment_exits_1(self, isolated_env, monkeypatch, capsys) -> None:
        monkeypatch.delenv("AKKERIS_API_HOST")
        with pytest.raises(SystemExit) as exc_info:
            main(["version"])
        assert exc_info.value.code == 1
        assert "AKKERIS_API_HOST" in capsys.readouterr().err

    def test_version(self, isolated_env, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["version"])
        assert exc_info.value.code == 0
        assert "=== Installed Plugins" in capsys.readouterr().out

    def test_api_error_maps_to_exit_code(self, isolated_env, monkeypatch, capsys) -> None:
        transport = httpx.MockTransport(lambda r: httpx.Response(404, json={"message": "no such app"}))
        monkeypatch.setattr(
            "aka.context.HttpClient", lambda timeout=None: HttpClient(timeout, transport=transport)
        )
        with pytest.raises(SystemExit) as exc_info:
            main(["apps", "info", "--app", "ghost-default"])
        assert exc_info.value.code == 4
        assert "no such app" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(self, isolated_env, monkeypatch, capsys) -> None:
        def explode(context):
            raise RuntimeError("unexpected")

        monkeypatch.setattr("aka.app.build_app", explode)
        with pytest.raises(SystemExit) as exc_info:
            main(["version"])
        assert exc_info.value.code == 1
        logs = list((isolated_env / ".akkeris" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: unexpected" in logs[0].read_text()
