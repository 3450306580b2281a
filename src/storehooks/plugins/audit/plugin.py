"""Audit plugin.

Each ``before_*`` listener records a start time in ``params["meta"]``; the
matching ``after_*`` listener logs the operation with its duration. The
``error`` listener logs the failure with the collection namespace. Nothing
is changed: the plugin only observes.

Options (all optional)::

    {
        "logger": "storehooks.audit",   # logger name
        "level": logging.INFO,          # level for completed operations
    }
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from storehooks.hooks import HookEvent

_PAIRS = [
    (HookEvent.BEFORE_INSERT_ONE, HookEvent.AFTER_INSERT_ONE),
    (HookEvent.BEFORE_INSERT_MANY, HookEvent.AFTER_INSERT_MANY),
    (HookEvent.BEFORE_UPDATE_ONE, HookEvent.AFTER_UPDATE_ONE),
    (HookEvent.BEFORE_UPDATE_MANY, HookEvent.AFTER_UPDATE_MANY),
    (HookEvent.BEFORE_DELETE_ONE, HookEvent.AFTER_DELETE_ONE),
    (HookEvent.BEFORE_DELETE_MANY, HookEvent.AFTER_DELETE_MANY),
    (HookEvent.BEFORE_REPLACE_ONE, HookEvent.AFTER_REPLACE_ONE),
    (HookEvent.BEFORE_UPSERT_ONE, HookEvent.AFTER_UPSERT_ONE),
]

_META_KEY = "audit_started"


def audit_plugin(collection: Any, options: Optional[dict[str, Any]] = None) -> None:
    """Log completed operations with their duration, and every operational error."""
    options = options or {}
    audit_logger = logging.getLogger(options.get("logger", "storehooks.audit"))
    level: int = options.get("level", logging.INFO)
    namespace = collection.namespace

    def start(params: dict[str, Any]) -> None:
        params["meta"][_META_KEY] = time.perf_counter()

    def make_finish(operation: str):
        def finish(params: dict[str, Any]) -> None:
            started = params["meta"].get(_META_KEY)
            elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
            audit_logger.log(level, "%s %s completed in %.1f ms", namespace, operation, elapsed_ms)

        return finish

    def log_error(context: dict[str, Any]) -> None:
        audit_logger.warning(
            "%s %s failed: %s", context["namespace"], context.get("method"), context["error"]
        )

    for before, after in _PAIRS:
        collection.on(before, start)
        collection.on(after, make_finish(after.value[len("after_"):]))
    collection.on(HookEvent.ERROR, log_error)
