"""Pydantic models for the aka configuration.

The configuration is assembled once at startup by
:func:`aka.config.load_config` from the environment and the install
location, and is frozen afterwards: plugins receive it through the
:class:`~aka.context.Context` and may read it, never change it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PackageInfo(BaseModel):
    """Name and version of the installed client, reported by ``aka version``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="aka-cli", description="Distribution name on the package index")
    version: str = Field(description="Installed client version")


class AkaConfig(BaseModel):
    """Immutable runtime configuration shared by every command and plugin.

    Example::

        AkaConfig(
            api_host="apps.example.io",
            auth_host="auth.example.io",
            home_dir=Path("~/.akkeris").expanduser(),
            plugins_dir=Path("/opt/aka/plugins"),
            third_party_plugins_dir=Path("~/.akkeris/plugins").expanduser(),
            package=PackageInfo(version="3.0.0"),
        )
    """

    model_config = ConfigDict(frozen=True)

    api_host: str = Field(description="API host, with or without a scheme (AKKERIS_API_HOST)")
    auth_host: str = Field(description="Authentication host (AKKERIS_AUTH_HOST)")
    home_dir: Path = Field(description="Root config directory, <home>/.akkeris")
    plugins_dir: Path = Field(description="Built-in plugin directory shipped with the client")
    third_party_plugins_dir: Path = Field(
        description="User-installed plugin directory, <home>/.akkeris/plugins"
    )
    package: PackageInfo
    debug: bool = Field(
        default=False,
        description="Verbose logging of otherwise swallowed errors (AKKERIS_DEBUG)",
    )
    request_timeout: Optional[float] = Field(
        default=None,
        description="Per-request timeout in seconds; None waits indefinitely",
    )

    @property
    def logs_dir(self) -> Path:
        """Directory for crash logs, ``<home>/.akkeris/logs``."""
        return self.home_dir / "logs"

    @property
    def api_url(self) -> str:
        """The API host as a base URL, ``https://`` prefixed when it has no scheme."""
        if self.api_host.startswith("http"):
            return self.api_host.rstrip("/")
        return f"https://{self.api_host}".rstrip("/")
