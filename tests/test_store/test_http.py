"""Tests for storehooks.store.http -- request shape and error mapping."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from storehooks.collection import Collection
from storehooks.exceptions import DuplicateKeyError, StoreConnectionError, StoreError
from storehooks.models import StoreConfig, UpdateSummary
from storehooks.store import HttpStore


BASE_URL = "http://store.test"


def _store(handler: Callable[[httpx.Request], httpx.Response]) -> HttpStore:
    config = StoreConfig(base_url=BASE_URL, database="app", headers={"X-Tenant": "t1"})
    return HttpStore(config, "users", transport=httpx.MockTransport(handler))


class _Recorder:
    """MockTransport handler returning canned JSON and keeping the requests."""

    def __init__(self, status: int = 200, payload: Any = None) -> None:
        self.status = status
        self.payload = payload if payload is not None else {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.payload)

    @property
    def body(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


class TestRequests:
    def test_insert_one(self) -> None:
        handler = _Recorder(payload={"insertedId": "abc"})
        with _store(handler) as store:
            doc = {"name": "ada"}
            result = store.insert_one(doc, {"w": 1})

        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url == f"{BASE_URL}/app/users/insertOne"
        assert request.headers["X-Tenant"] == "t1"
        assert handler.body == {"document": {"name": "ada"}, "options": {"w": 1}}
        assert result.inserted_id == "abc"
        assert doc["_id"] == "abc"

    def test_update_one_result(self) -> None:
        handler = _Recorder(payload={"matchedCount": 1, "modifiedCount": 0, "upsertedId": None})
        with _store(handler) as store:
            result = store.update_one({"_id": 1}, {"$set": {"a": 1}}, {})
        assert handler.requests[0].url.path == "/app/users/updateOne"
        assert handler.body["update"] == {"$set": {"a": 1}}
        assert (result.matched_count, result.modified_count) == (1, 0)

    def test_find_one_and_update_result(self) -> None:
        handler = _Recorder(
            payload={
                "value": {"_id": 1},
                "lastErrorObject": {"n": 1, "updatedExisting": True},
                "ok": 1,
            }
        )
        with _store(handler) as store:
            result = store.find_one_and_update({"_id": 1}, {"$set": {"a": 1}}, {"upsert": True})
        assert result.value == {"_id": 1}
        assert result.last_error_object.updated_existing is True
        assert handler.body["options"] == {"upsert": True}

    def test_find(self) -> None:
        handler = _Recorder(payload={"documents": [{"_id": 1}, {"_id": 2}]})
        with _store(handler) as store:
            assert store.find({"a": 1}, {"_id": 1}) == [{"_id": 1}, {"_id": 2}]
        assert handler.body == {"filter": {"a": 1}, "projection": {"_id": 1}}

    def test_delete_many(self) -> None:
        handler = _Recorder(payload={"deletedCount": 4})
        with _store(handler) as store:
            assert store.delete_many({}, {}).deleted_count == 4

    def test_requires_context_manager(self) -> None:
        store = _store(_Recorder())
        with pytest.raises(AssertionError):
            store.delete_one({}, {})


class TestErrorMapping:
    def test_duplicate_key(self) -> None:
        handler = _Recorder(status=409, payload={"code": 11000, "errmsg": "E11000 dup key"})
        with _store(handler) as store:
            with pytest.raises(DuplicateKeyError, match="E11000") as exc_info:
                store.insert_one({"_id": 1}, {})
        assert exc_info.value.details["code"] == 11000

    def test_server_error(self) -> None:
        handler = _Recorder(status=500, payload={"message": "exploded"})
        with _store(handler) as store:
            with pytest.raises(StoreError, match="HTTP 500: exploded"):
                store.delete_one({}, {})

    def test_non_json_error_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        with _store(handler) as store:
            with pytest.raises(StoreError, match="bad gateway"):
                store.find_one({}, None)

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with _store(handler) as store:
            with pytest.raises(StoreConnectionError):
                store.insert_one({}, {})


class TestHttpCollection:
    def test_collection_over_http_store(self) -> None:
        handler = _Recorder(payload={"matchedCount": 2, "modifiedCount": 2})
        with _store(handler) as store:
            users = Collection(store, "users", database=store.database)
            result = users.update_many({"active": False}, {"$set": {"archived": True}})
        assert result == UpdateSummary(matched_count=2, modified_count=2)
        assert handler.body["options"] == {}

    def test_duplicate_key_upsert_retried(self) -> None:
        responses = [
            httpx.Response(409, json={"code": 11000, "errmsg": "E11000"}),
            httpx.Response(
                200,
                json={"value": {"_id": 1, "n": 1}, "lastErrorObject": {"n": 1, "updatedExisting": True}},
            ),
        ]
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return responses[len(calls) - 1]

        with _store(handler) as store:
            users = Collection(store, "users")
            value = users.find_one_and_upsert({"_id": 1}, {"$inc": {"n": 1}})
        assert value == {"_id": 1, "n": 1}
        assert len(calls) == 2
