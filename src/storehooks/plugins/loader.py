"""Apply a plugin to a collection."""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from storehooks.exceptions import InvalidPluginError
from storehooks.plugins.registry import PluginFunc, PluginRegistry, get_default_registry

logger = logging.getLogger(__name__)


def apply_plugin(
    collection: Any,
    plugin: Union[str, PluginFunc],
    options: Any = None,
    registry: Optional[PluginRegistry] = None,
) -> None:
    """Resolve *plugin* and call it with ``(collection, options)``.

    Args:
        collection: The collection the plugin registers listeners on.
        plugin: A registered plugin name or the plugin function itself.
        options: Passed to the plugin unchanged.
        registry: Registry used to resolve names; defaults to
            :func:`~storehooks.plugins.registry.get_default_registry`.

    Raises:
        PluginNotFoundError: If *plugin* is a name nothing is registered under.
        InvalidPluginError: If the resolved plugin is not callable.

    Exceptions raised by the plugin itself propagate unchanged.
    """
    if isinstance(plugin, str):
        init_plugin = (registry or get_default_registry()).resolve(plugin)
    else:
        init_plugin = plugin

    if not callable(init_plugin):
        raise InvalidPluginError("Unknown plugin type")

    init_plugin(collection, options)
    logger.info("Applied plugin %s to %s", getattr(init_plugin, "__name__", init_plugin), collection)
