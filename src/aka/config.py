"""Startup configuration: environment, directory layout, and directory creation.

This module builds the frozen :class:`~aka.models.AkaConfig` the rest of
the client runs on:

* **Environment** -- ``AKKERIS_API_HOST`` and ``AKKERIS_AUTH_HOST`` are
  required; a missing value is a fatal :class:`~aka.exceptions.ConfigError`
  whose message names what to set. ``AKKERIS_DEBUG`` enables debug output.
* **Directory layout** -- ``<home>/.akkeris`` (must exist or be creatable),
  ``<home>/.akkeris/plugins`` for third-party plugins, and the built-in
  plugin directory next to this package.

Every function takes an optional ``environ`` mapping so tests can pass a
plain dict instead of patching :data:`os.environ`.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Optional

from aka import __version__
from aka.exceptions import ConfigError
from aka.models import AkaConfig, PackageInfo

logger = logging.getLogger(__name__)

API_HOST_VAR = "AKKERIS_API_HOST"
AUTH_HOST_VAR = "AKKERIS_AUTH_HOST"
DEBUG_VAR = "AKKERIS_DEBUG"

_HOME_DIRNAME = ".akkeris"
_PLUGINS_DIRNAME = "plugins"

BUILTIN_PLUGINS_DIR = Path(__file__).resolve().parent / _PLUGINS_DIRNAME
"""Directory holding the plugins that ship with the client."""


def get_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the user's home directory.

    Reads ``USERPROFILE`` on Windows and ``HOME`` elsewhere, falling back to
    :meth:`pathlib.Path.home` when the variable is unset.
    """
    env = os.environ if environ is None else environ
    var = "USERPROFILE" if sys.platform == "win32" else "HOME"
    value = env.get(var)
    return Path(value) if value else Path.home()


def get_home_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return ``<home>/.akkeris``."""
    return get_home(environ) / _HOME_DIRNAME


def get_third_party_plugins_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return ``<home>/.akkeris/plugins``."""
    return get_home_dir(environ) / _PLUGINS_DIRNAME


def is_debug(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when ``AKKERIS_DEBUG`` is set to anything but an empty string or ``0``."""
    env = os.environ if environ is None else environ
    return env.get(DEBUG_VAR, "") not in ("", "0")


def ensure_dir(path: Path) -> bool:
    """Make sure *path* is a directory, creating it (and its parents) if missing.

    Returns:
        ``True`` when *path* is a usable directory afterwards, ``False`` when
        it cannot be created or exists as something other than a directory.
        Failures are logged, never raised.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except FileExistsError:
        logger.debug("%s exists and is not a directory", path)
        return False
    except OSError as exc:
        logger.debug("Cannot create %s: %s", path, exc)
        return False
    return path.is_dir()


def missing_environment(environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """Return the required environment variables that are unset or empty."""
    env = os.environ if environ is None else environ
    return [var for var in (API_HOST_VAR, AUTH_HOST_VAR) if not env.get(var)]


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    plugins_dir: Optional[Path] = None,
) -> AkaConfig:
    """Assemble the runtime configuration from the environment.

    Args:
        environ: Environment mapping; defaults to :data:`os.environ`.
        plugins_dir: Override for the built-in plugin directory (tests).

    Returns:
        The frozen :class:`~aka.models.AkaConfig`.

    Raises:
        ConfigError: If ``AKKERIS_API_HOST`` or ``AKKERIS_AUTH_HOST`` is
            missing, or ``<home>/.akkeris`` cannot be used as a directory.
    """
    env = os.environ if environ is None else environ

    missing = missing_environment(env)
    if missing:
        names = " and ".join(missing)
        exports = " and ".join(f"export {var}=..." for var in missing)
        raise ConfigError(
            f"aka cannot find the environment variable(s) {names}.\n"
            f"Set them using {exports}, or add them to your shell profile.\n"
            "If you do not know these values, ask your Akkeris administrator."
        )

    home_dir = get_home_dir(env)
    if not ensure_dir(home_dir):
        raise ConfigError(
            f"The aka config directory cannot be accessed, could not be created, "
            f"or is a file ({home_dir})."
        )

    return AkaConfig(
        api_host=env[API_HOST_VAR],
        auth_host=env[AUTH_HOST_VAR],
        home_dir=home_dir,
        plugins_dir=plugins_dir or BUILTIN_PLUGINS_DIR,
        third_party_plugins_dir=get_third_party_plugins_dir(env),
        package=PackageInfo(version=__version__),
        debug=is_debug(env),
    )
