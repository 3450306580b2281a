"""Plugins command -- list built-in and entry-point plugins."""

from __future__ import annotations

from storehooks.output import debug, print_table


def plugins_command() -> None:
    """List registered plugins.

    Built-in plugins are always listed. Entry-point plugins are discovered
    honouring the ``plugins.enabled``/``plugins.disabled`` configuration.

    Example::

        storehooks plugins
    """
    from storehooks.config import resolve_config
    from storehooks.plugins import PluginRegistry

    config = resolve_config()
    registry = PluginRegistry()
    discovered = registry.discover(config.plugins)
    if discovered:
        debug(f"Entry-point plugins: {', '.join(discovered)}")

    rows = [[p["name"], p["description"]] for p in registry.list_plugins()]
    print_table(["Name", "Description"], rows, title="Plugins")
