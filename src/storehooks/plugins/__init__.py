"""Plugin system for storehooks -- named plugin functions and their application.

A plugin is a function ``plugin(collection, options) -> None`` that calls
``collection.on(...)`` to register listeners. Plugins are applied with
:meth:`~storehooks.collection.Collection.add_plugin`, either directly or by
a name resolved through a :class:`PluginRegistry`.

Key names:

* :class:`PluginRegistry` -- name-to-function registry with entry-point
  discovery.
* :func:`apply_plugin` -- resolve and invoke a plugin.
* :func:`get_default_registry` -- process-wide registry used when a
  collection has none of its own.

Built-in plugins: ``timestamps`` and ``audit``.
"""

from storehooks.plugins.loader import apply_plugin
from storehooks.plugins.registry import (
    ENTRY_POINT_GROUP,
    PluginRegistry,
    get_default_registry,
    reset_default_registry,
)

__all__ = [
    "ENTRY_POINT_GROUP",
    "PluginRegistry",
    "apply_plugin",
    "get_default_registry",
    "reset_default_registry",
]
