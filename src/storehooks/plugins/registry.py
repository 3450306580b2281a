"""Plugin registry -- maps plugin names to plugin functions.

A plugin is a plain function ``plugin(collection, options) -> None`` that
registers listeners on the collection it is applied to. Names are resolved
through an explicit :class:`PluginRegistry` populated at startup rather
than by importing modules by name at call time.

Built-in plugins are registered when the registry is created. Third-party
packages add their own through the ``storehooks.plugins`` entry-point
group, picked up by :meth:`PluginRegistry.discover`::

    [project.entry-points."storehooks.plugins"]
    soft-delete = "my_package.soft_delete:plugin"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any, Callable, Optional

from storehooks.exceptions import PluginError, PluginNotFoundError
from storehooks.models import PluginsConfig

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "storehooks.plugins"
"""The entry-point group name used for plugin discovery."""

PluginFunc = Callable[[Any, Any], None]


def _builtin_plugins() -> dict[str, PluginFunc]:
    from storehooks.plugins.audit import audit_plugin
    from storehooks.plugins.timestamps import timestamps_plugin

    return {
        "audit": audit_plugin,
        "timestamps": timestamps_plugin,
    }


class PluginRegistry:
    """Named plugin functions available to :meth:`Collection.add_plugin`.

    Args:
        include_builtins: Register the bundled ``audit`` and ``timestamps``
            plugins on construction.

    Example::

        registry = PluginRegistry()
        registry.discover()
        users = Collection(store, "users", plugin_registry=registry)
        users.add_plugin("timestamps")
    """

    def __init__(self, include_builtins: bool = True) -> None:
        self._plugins: dict[str, PluginFunc] = {}
        if include_builtins:
            for name, plugin in _builtin_plugins().items():
                self.register(name, plugin)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str, plugin: PluginFunc) -> None:
        """Register *plugin* under *name*.

        Raises:
            PluginError: If *name* is already registered or *plugin* is not
                callable.
        """
        if name in self._plugins:
            raise PluginError(f'Plugin "{name}" is already registered')
        if not callable(plugin):
            raise PluginError(f'Plugin "{name}" must be callable')
        self._plugins[name] = plugin
        logger.debug("Registered plugin '%s'", name)

    def discover(self, config: Optional[PluginsConfig] = None) -> list[str]:
        """Register plugins advertised under the ``storehooks.plugins`` entry-point group.

        When *config* lists ``enabled`` plugins only those are loaded;
        plugins in ``disabled`` are always skipped. Names already
        registered (built-ins included) are left untouched.

        Returns:
            Names of the plugins registered by this call. Entry points that
            fail to load are logged as warnings and skipped.
        """
        config = config or PluginsConfig()
        enabled_set = set(config.enabled)
        disabled_set = set(config.disabled)
        loaded_names: list[str] = []

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            name = ep.name
            if enabled_set and name not in enabled_set:
                logger.debug("Plugin '%s' not in enabled list, skipping", name)
                continue
            if name in disabled_set:
                logger.debug("Plugin '%s' is disabled, skipping", name)
                continue
            if name in self._plugins:
                continue

            try:
                self.register(name, ep.load())
                loaded_names.append(name)
            except Exception as exc:
                logger.warning("Failed to load plugin '%s': %s", name, exc)

        if loaded_names:
            logger.info("Discovered plugins: %s", ", ".join(loaded_names))
        return loaded_names

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> PluginFunc:
        """Return the plugin registered under *name*.

        Raises:
            PluginNotFoundError: If nothing is registered under *name*.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginNotFoundError(f'Plugin "{name}" is undefined') from None

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def list_plugins(self) -> list[dict[str, str]]:
        """List registered plugins as ``{"name", "description"}`` dicts, sorted by name."""
        result = []
        for name in sorted(self._plugins):
            doc = (self._plugins[name].__doc__ or "").strip()
            result.append({"name": name, "description": doc.splitlines()[0] if doc else ""})
        return result


_default_registry: Optional[PluginRegistry] = None


def get_default_registry() -> PluginRegistry:
    """Return the process-wide registry, creating and discovering it on first use."""
    global _default_registry
    if _default_registry is None:
        _default_registry = PluginRegistry()
        _default_registry.discover()
    return _default_registry


def reset_default_registry() -> None:
    """Drop the process-wide registry so the next lookup rebuilds it."""
    global _default_registry
    _default_registry = None
