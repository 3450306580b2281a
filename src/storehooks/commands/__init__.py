"""Built-in CLI sub-commands for storehooks.

* :mod:`~storehooks.commands.events` -- list the lifecycle events.
* :mod:`~storehooks.commands.plugins` -- list the registered plugins.
* :mod:`~storehooks.commands.config` -- show the resolved configuration.

Single commands export a plain callback registered on the root app; the
``config`` group exports a :class:`typer.Typer` sub-application.
"""
