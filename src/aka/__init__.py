"""aka -- an extensible command-line client for the Akkeris platform API.

The client is a small core that discovers command plugins in two places --
the plugins shipped with the client and the ones the user installed under
``~/.akkeris/plugins`` -- mounts their commands on a single Typer
application, and hands every plugin a shared :class:`~aka.context.Context`
with an authenticated API client.

Typical session::

    export AKKERIS_API_HOST=apps.example.io
    export AKKERIS_AUTH_HOST=auth.example.io
    aka version                 # client version and installed plugins
    aka plugins install https://github.com/example/aka-plugin-logs.git
    aka update                  # pull plugin and client updates

Modules:
    app: Typer application factory and CLI entry point.
    context: The shared state passed to plugins and commands.
    config: Environment and directory layout at startup.
    models: Pydantic configuration models.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich.
    update: Plugin and client self-update.
"""

__version__ = "3.1.0"
