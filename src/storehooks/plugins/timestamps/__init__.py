"""Timestamps plugin.

Stamps creation and modification times on documents written through a
collection.

See Also:
    :func:`~storehooks.plugins.timestamps.plugin.timestamps_plugin`
"""

from storehooks.plugins.timestamps.plugin import timestamps_plugin

__all__ = ["timestamps_plugin"]
