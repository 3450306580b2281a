"""Tests for AsyncCollection -- the coroutine flavour of the pipeline."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from storehooks.async_collection import AsyncCollection
from storehooks.exceptions import (
    DuplicateKeyError,
    HookRejectionError,
    UnsupportedMethodError,
    UpsertOptionConflictError,
)
from storehooks.models import DeleteSummary, FindAndModifyResult, LastErrorObject, UpdateSummary
from storehooks.store import AsyncMemoryStore


@pytest.fixture
def orders(plugin_registry) -> AsyncCollection:
    return AsyncCollection(AsyncMemoryStore(), "orders", database="shop", plugin_registry=plugin_registry)


class TestAsyncPipeline:
    def test_insert_with_coroutine_listeners(self, orders: AsyncCollection) -> None:
        order: list[str] = []

        @orders.on("before_insert_one")
        async def before(params: dict[str, Any]) -> None:
            await asyncio.sleep(0)
            order.append("before")

        @orders.on("after_insert_one")
        def after(params: dict[str, Any]) -> None:
            order.append(f"after:{params['obj']['sku']}")

        doc = asyncio.run(orders.insert_one({"sku": "A-1"}))

        assert doc["sku"] == "A-1" and "_id" in doc
        assert order == ["before", "after:A-1"]

    def test_update_and_delete(self, orders: AsyncCollection) -> None:
        async def scenario() -> tuple[Any, Any, list]:
            await orders.insert_many([{"sku": "A"}, {"sku": "B"}])
            updated = await orders.update_many({}, {"$set": {"paid": True}})
            deleted = await orders.delete_one({"sku": "A"})
            remaining = await orders.find({})
            return updated, deleted, remaining

        updated, deleted, remaining = asyncio.run(scenario())
        assert updated == UpdateSummary(matched_count=2, modified_count=2)
        assert deleted == DeleteSummary(deleted_count=1)
        assert [d["sku"] for d in remaining] == ["B"]

    def test_find_one_and_variants(self, orders: AsyncCollection) -> None:
        async def scenario() -> tuple[Any, Any, Any]:
            doc = await orders.insert_one({"sku": "A", "qty": 1})
            updated = await orders.find_one_and_update(
                {"_id": doc["_id"]}, {"$inc": {"qty": 1}}, {"return_document": "after"}
            )
            replaced = await orders.find_one_and_replace(
                {"_id": doc["_id"]}, {"sku": "A", "qty": 9}, {"return_document": "after"}
            )
            deleted = await orders.find_one_and_delete({"_id": doc["_id"]})
            return updated, replaced, deleted

        updated, replaced, deleted = asyncio.run(scenario())
        assert updated["qty"] == 2
        assert replaced["qty"] == 9
        assert deleted["qty"] == 9

    def test_replace_one(self, orders: AsyncCollection) -> None:
        async def scenario() -> Any:
            doc = await orders.insert_one({"sku": "A"})
            await orders.replace_one({"_id": doc["_id"]}, {"sku": "Z"})
            return await orders.find_one({"_id": doc["_id"]})

        assert asyncio.run(scenario())["sku"] == "Z"

    def test_before_failure_routes_to_error(self, orders: AsyncCollection) -> None:
        seen: list[Any] = []

        async def reject(params: dict[str, Any]) -> None:
            raise ValueError("closed")

        async def on_error(context: dict[str, Any]) -> None:
            seen.append(context["error"])

        orders.on("before_delete_one", reject)
        orders.on("error", on_error)
        with pytest.raises(HookRejectionError):
            asyncio.run(orders.delete_one({"sku": "A"}))
        assert len(seen) == 1 and isinstance(seen[0], HookRejectionError)

    def test_async_error_listener_translates(self, orders: AsyncCollection) -> None:
        class Conflict(Exception):
            pass

        async def translate(context: dict[str, Any]) -> None:
            raise Conflict(context["namespace"])

        orders.on("error", translate)
        with pytest.raises(Conflict, match="shop.orders"):
            asyncio.run(orders.update_one({}, {"$set": {"a": 1}}, {"upsert": True}))

    def test_upsert_conflict(self, orders: AsyncCollection) -> None:
        with pytest.raises(UpsertOptionConflictError):
            asyncio.run(orders.replace_one({}, {"a": 1}, {"upsert": True}))

    def test_unsupported(self) -> None:
        store = AsyncMock()
        orders = AsyncCollection(store, "orders", {"change_data_methods": ["insert_one"]})
        with pytest.raises(UnsupportedMethodError):
            asyncio.run(orders.delete_many({}))
        store.delete_many.assert_not_called()


class TestAsyncUpsert:
    def test_upsert_on_memory_store(self, orders: AsyncCollection) -> None:
        options = {"return_document": "after"}

        async def scenario() -> tuple[Any, Any]:
            first = await orders.find_one_and_upsert({"sku": "A"}, {"$set": {"qty": 1}}, options)
            second = await orders.find_one_and_upsert({"sku": "A"}, {"$inc": {"qty": 1}}, options)
            return first, second

        first, second = asyncio.run(scenario())
        assert first["qty"] == 1
        assert second["qty"] == 2 and second["_id"] == first["_id"]

    def test_retry_once(self) -> None:
        store = AsyncMock()
        store.find_one_and_update.side_effect = [
            DuplicateKeyError("E11000"),
            FindAndModifyResult(value={"_id": 1}, last_error_object=LastErrorObject(n=1)),
        ]
        orders = AsyncCollection(store, "orders")
        assert asyncio.run(orders.find_one_and_upsert({"_id": 1}, {"$set": {"a": 1}})) == {"_id": 1}
        assert store.find_one_and_update.await_count == 2
