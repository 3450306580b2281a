"""Asynchronous hooked collection -- mirrors :class:`~storehooks.collection.Collection` API.

This module provides :class:`AsyncCollection`, the non-blocking counterpart
to :class:`~storehooks.collection.Collection`. It runs the same pipeline
over a store whose verbs are coroutines. Listeners may be plain callables
or coroutine functions; each one is awaited before the next starts, so
ordering and short-circuit behaviour match the synchronous collection.

See Also:
    :class:`~storehooks.collection.Collection` for the blocking equivalent.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from storehooks.collection import BaseCollection
from storehooks.operations import OPERATIONS, Operation
from storehooks.store.base import as_store_error

logger = logging.getLogger(__name__)


class AsyncCollection(BaseCollection):
    """Hooked collection over an :class:`~storehooks.store.base.AsyncStore`.

    Example::

        orders = AsyncCollection(AsyncMemoryStore(), "orders")

        @orders.on("after_insert_one")
        async def publish(params):
            await bus.publish("order.created", params["obj"])

        await orders.insert_one({"sku": "A-1"})
    """

    async def _execute(
        self, method: str, args: tuple, options: Optional[Mapping[str, Any]]
    ) -> Any:
        operation = OPERATIONS[method]
        self._check_support(method)
        if options is None:
            options = dict(operation.default_options)

        fields = operation.snapshot(args, options)
        try:
            flags, store_options = self._prepare(operation, args, options)
            fields["options"] = store_options

            params = operation.before_params(args, store_options)
            await self.hooks.atrigger(operation.before, params)

            native = await self._delegate(operation, params)
            normalized = operation.normalize(native)

            await self.hooks.atrigger(
                operation.after, operation.after_params(params, native, normalized)
            )
        except Exception as exc:
            raise await self._interceptor.aintercept(exc, fields)

        logger.debug("%s on %s completed", method, self.namespace)
        return operation.shape(flags, native, normalized)

    async def _delegate(self, operation: Operation, params: dict[str, Any]) -> Any:
        store_method, args = self._store_call(operation, params)

        async def attempt() -> Any:
            try:
                return await store_method(*args)
            except Exception as exc:
                raise as_store_error(exc)

        if operation.is_upsert:
            return await self._upserts.acall(attempt)
        return await attempt()

    # ------------------------------------------------------------------ #
    # Find (no hooks)
    # ------------------------------------------------------------------ #

    async def find(
        self, query: Optional[Mapping[str, Any]] = None, projection: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._store.find(dict(query or {}), projection)

    async def find_one(
        self, query: Optional[Mapping[str, Any]] = None, projection: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._store.find_one(dict(query or {}), projection)

    # ------------------------------------------------------------------ #
    # Hooked verbs
    # ------------------------------------------------------------------ #

    async def insert_one(
        self, doc: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._execute("insert_one", (doc,), options)

    async def insert_many(
        self, docs: list[Any], options: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._execute("insert_many", (docs,), options)

    async def update_one(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._execute("update_one", (filter, update), options)

    async def update_many(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._execute("update_many", (filter, update), options)

    async def find_one_and_update(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._execute("find_one_and_update", (filter, update), options)

    async def delete_one(
        self, filter: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._execute("delete_one", (filter,), options)

    async def delete_many(
        self, filter: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._execute("delete_many", (filter,), options)

    async def find_one_and_delete(
        self, filter: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._execute("find_one_and_delete", (filter,), options)

    async def replace_one(
        self,
        filter: Mapping[str, Any],
        replacement: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._execute("replace_one", (filter, replacement), options)

    async def find_one_and_replace(
        self,
        filter: Mapping[str, Any],
        replacement: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._execute("find_one_and_replace", (filter, replacement), options)

    async def find_one_and_upsert(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._execute("find_one_and_upsert", (filter, update), options)
