"""Audit plugin.

Logs every completed collection operation with its duration, and every
operational error.

See Also:
    :func:`~storehooks.plugins.audit.plugin.audit_plugin`
"""

from storehooks.plugins.audit.plugin import audit_plugin

__all__ = ["audit_plugin"]
