"""Built-in commands that are part of the core rather than plugins.

* ``version`` -- :func:`~aka.commands.version.version_command`
* ``update`` -- :func:`~aka.commands.update.update_command`
* ``completion`` -- :func:`~aka.commands.completion.completion_command`
* ``plugins`` -- :data:`~aka.commands.plugins.plugins_app`
"""
