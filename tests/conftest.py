"""Shared test fixtures for aka.

Provides an isolated home directory and environment, a ready-made
:class:`~aka.context.Context`, a helper for writing plugin packages to disk,
and automatic reset of the global output state between tests.
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest

from aka.config import load_config
from aka.context import Context
from aka.client.http_client import HttpClient
from aka.models import AkaConfig
from aka.output import OutputManager, reset_output, set_output

API_HOST = "apps.example.io"
AUTH_HOST = "auth.example.io"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, and CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a colourless OutputManager for tests that call library code directly."""
    output = OutputManager(no_color=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temporary directory and set the required variables.

    Clears every variable that changes how aka authenticates so tests
    never pick up the developer's real credentials.

    Returns:
        The temporary home directory.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("AKKERIS_API_HOST", API_HOST)
    monkeypatch.setenv("AKKERIS_AUTH_HOST", AUTH_HOST)
    for var in ("API_AUTH", "API_TOKEN", "NETRC", "AKKERIS_DEBUG", "NO_COLOR"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def builtin_dir(tmp_path: Path) -> Path:
    """An empty directory standing in for the built-in plugin directory."""
    path = tmp_path / "builtin"
    path.mkdir()
    return path


@pytest.fixture
def config(isolated_env: Path, builtin_dir: Path) -> AkaConfig:
    return load_config(plugins_dir=builtin_dir)


@pytest.fixture
def context(config: AkaConfig) -> Context:
    return Context(config=config)


# ---------------------------------------------------------------------------
# Plugin packages on disk
# ---------------------------------------------------------------------------

PluginWriter = Callable[..., Path]


@pytest.fixture
def write_plugin() -> PluginWriter:
    """Return a function that writes a plugin package.

    ``write_plugin(directory, name, body)`` creates
    ``directory/name/__init__.py`` holding the dedented *body* and returns
    the plugin directory.
    """

    def _write(directory: Path, name: str, body: str = "", extra: Optional[dict] = None) -> Path:
        plugin_dir = directory / name
        plugin_dir.mkdir(parents=True, exist_ok=True)
        (plugin_dir / "__init__.py").write_text(textwrap.dedent(body))
        for filename, content in (extra or {}).items():
            (plugin_dir / filename).write_text(textwrap.dedent(content))
        return plugin_dir

    return _write


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_http() -> Callable[..., HttpClient]:
    """Return a function building an :class:`HttpClient` whose requests are answered by a handler."""

    def _build(handler: Callable[[httpx.Request], httpx.Response]) -> HttpClient:
        return HttpClient(transport=httpx.MockTransport(handler))

    return _build
