"""Timestamps plugin.

Registers ``before_*`` listeners that add a creation and a modification
time to every document written through the collection:

* inserts get both fields;
* updates get the modification field through ``$set``;
* replacements get the modification field;
* upserts get the modification field, plus the creation field through
  ``$setOnInsert`` for modifier upserts (or when missing, for replacement
  upserts).

Options (all optional)::

    {
        "created_field": "created_at",
        "updated_field": "updated_at",
        "clock": lambda: datetime.now(timezone.utc),
    }
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional

from storehooks.hooks import HookEvent
from storehooks.upsert import is_modifier


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _with_operator(modifier: dict[str, Any], operator: str, values: dict[str, Any]) -> dict[str, Any]:
    stamped = dict(modifier)
    stamped[operator] = {**modifier.get(operator, {}), **values}
    return stamped


def timestamps_plugin(collection: Any, options: Optional[dict[str, Any]] = None) -> None:
    """Stamp created/updated times on inserted, updated, replaced and upserted documents."""
    options = options or {}
    created_field: str = options.get("created_field", "created_at")
    updated_field: str = options.get("updated_field", "updated_at")
    clock: Callable[[], Any] = options.get("clock", _utcnow)

    def stamp_insert(params: dict[str, Any]) -> None:
        now = clock()
        params["obj"].setdefault(created_field, now)
        params["obj"][updated_field] = now

    def stamp_insert_many(params: dict[str, Any]) -> None:
        now = clock()
        for doc in params["objs"]:
            doc.setdefault(created_field, now)
            doc[updated_field] = now

    def stamp_update(params: dict[str, Any]) -> None:
        params["modifier"] = _with_operator(params["modifier"], "$set", {updated_field: clock()})

    def stamp_replace(params: dict[str, Any]) -> None:
        params["replacement"] = {**params["replacement"], updated_field: clock()}

    def stamp_upsert(params: dict[str, Any]) -> None:
        now = clock()
        payload = params["modifier"]
        if is_modifier(payload):
            payload = _with_operator(payload, "$set", {updated_field: now})
            params["modifier"] = _with_operator(payload, "$setOnInsert", {created_field: now})
        else:
            params["modifier"] = {created_field: now, **payload, updated_field: now}

    collection.on(HookEvent.BEFORE_INSERT_ONE, stamp_insert)
    collection.on(HookEvent.BEFORE_INSERT_MANY, stamp_insert_many)
    collection.on(HookEvent.BEFORE_UPDATE_ONE, stamp_update)
    collection.on(HookEvent.BEFORE_UPDATE_MANY, stamp_update)
    collection.on(HookEvent.BEFORE_REPLACE_ONE, stamp_replace)
    collection.on(HookEvent.BEFORE_UPSERT_ONE, stamp_upsert)
