"""Tests for storehooks.store.memory -- the in-process store."""

from __future__ import annotations

import asyncio

import pytest

from storehooks.exceptions import DuplicateKeyError, StoreError
from storehooks.store import AsyncMemoryStore, MemoryStore


@pytest.fixture
def store() -> MemoryStore:
    s = MemoryStore()
    s.insert_many(
        [
            {"_id": 1, "name": "ada", "age": 36, "tags": ["math"]},
            {"_id": 2, "name": "alan", "age": 41, "profile": {"city": "London"}},
            {"_id": 3, "name": "grace", "age": 85},
        ],
        {},
    )
    return s


class TestQueries:
    def test_equality(self, store: MemoryStore) -> None:
        assert [d["_id"] for d in store.find({"name": "alan"})] == [2]

    def test_dotted_path(self, store: MemoryStore) -> None:
        assert store.find_one({"profile.city": "London"})["_id"] == 2

    @pytest.mark.parametrize(
        "query, ids",
        [
            ({"age": {"$gt": 40}}, [2, 3]),
            ({"age": {"$gte": 41, "$lt": 85}}, [2]),
            ({"age": {"$lte": 36}}, [1]),
            ({"_id": {"$in": [1, 3]}}, [1, 3]),
            ({"name": {"$ne": "ada"}}, [2, 3]),
            ({"profile": {"$exists": True}}, [2]),
            ({"profile": {"$exists": False}}, [1, 3]),
        ],
    )
    def test_operators(self, store: MemoryStore, query: dict, ids: list[int]) -> None:
        assert [d["_id"] for d in store.find(query)] == ids

    def test_projection(self, store: MemoryStore) -> None:
        assert store.find_one({"_id": 1}, {"name": 1}) == {"_id": 1, "name": "ada"}

    def test_exclusion_projection(self, store: MemoryStore) -> None:
        assert store.find_one({"_id": 3}, {"age": 0}) == {"_id": 3, "name": "grace"}

    def test_find_returns_copies(self, store: MemoryStore) -> None:
        store.find_one({"_id": 1})["name"] = "changed"
        assert store.find_one({"_id": 1})["name"] == "ada"

    def test_unsupported_operator(self, store: MemoryStore) -> None:
        with pytest.raises(StoreError):
            store.find({"age": {"$regex": "1"}})


class TestInsert:
    def test_assigns_id_on_callers_doc(self) -> None:
        store = MemoryStore()
        doc = {"a": 1}
        result = store.insert_one(doc, {})
        assert doc["_id"] == result.inserted_id
        assert result.ops == [doc]

    def test_duplicate_id(self, store: MemoryStore) -> None:
        with pytest.raises(DuplicateKeyError) as exc_info:
            store.insert_one({"_id": 1}, {})
        assert exc_info.value.code == 11000

    def test_unique_index(self) -> None:
        store = MemoryStore()
        assert store.create_index("email", unique=True) == "email_1"
        store.insert_one({"email": "a"}, {})
        with pytest.raises(DuplicateKeyError, match="E11000"):
            store.insert_one({"email": "a"}, {})

    def test_ordered_insert_many_stops_at_first_failure(self) -> None:
        store = MemoryStore()
        with pytest.raises(DuplicateKeyError):
            store.insert_many([{"_id": 1}, {"_id": 1}, {"_id": 2}], {"ordered": True})
        assert [d["_id"] for d in store.find({})] == [1]

    def test_unordered_insert_many_continues(self) -> None:
        store = MemoryStore()
        with pytest.raises(DuplicateKeyError):
            store.insert_many([{"_id": 1}, {"_id": 1}, {"_id": 2}], {"ordered": False})
        assert [d["_id"] for d in store.find({})] == [1, 2]


class TestUpdate:
    def test_operators(self, store: MemoryStore) -> None:
        result = store.update_one(
            {"_id": 1},
            {"$set": {"profile.city": "Paris"}, "$inc": {"age": 1}, "$push": {"tags": "logic"},
             "$unset": {"name": ""}},
            {},
        )
        assert (result.matched_count, result.modified_count) == (1, 1)
        assert store.find_one({"_id": 1}) == {
            "_id": 1, "age": 37, "tags": ["math", "logic"], "profile": {"city": "Paris"},
        }

    def test_unchanged_document_not_counted_as_modified(self, store: MemoryStore) -> None:
        result = store.update_one({"_id": 1}, {"$set": {"name": "ada"}}, {})
        assert (result.matched_count, result.modified_count) == (1, 0)

    def test_requires_operators(self, store: MemoryStore) -> None:
        with pytest.raises(StoreError):
            store.update_one({"_id": 1}, {"name": "x"}, {})

    def test_upsert_seeds_from_filter(self) -> None:
        store = MemoryStore()
        result = store.update_one(
            {"email": "a"}, {"$set": {"n": 1}, "$setOnInsert": {"created": True}}, {"upsert": True}
        )
        assert result.upserted_id is not None
        doc = store.find_one({"_id": result.upserted_id})
        assert doc["email"] == "a" and doc["n"] == 1 and doc["created"] is True

    def test_set_on_insert_ignored_on_update(self, store: MemoryStore) -> None:
        store.update_one({"_id": 3}, {"$setOnInsert": {"x": 1}}, {"upsert": True})
        assert "x" not in store.find_one({"_id": 3})

    def test_replace_keeps_id(self, store: MemoryStore) -> None:
        store.replace_one({"_id": 2}, {"name": "turing"}, {})
        assert store.find_one({"_id": 2}) == {"_id": 2, "name": "turing"}

    def test_replace_rejects_operators(self, store: MemoryStore) -> None:
        with pytest.raises(StoreError):
            store.replace_one({"_id": 2}, {"$set": {"a": 1}}, {})


class TestFindAndModify:
    def test_returns_before_by_default(self, store: MemoryStore) -> None:
        result = store.find_one_and_update({"_id": 1}, {"$inc": {"age": 1}}, {})
        assert result.value["age"] == 36
        assert result.last_error_object.n == 1
        assert result.last_error_object.updated_existing is True

    def test_return_document_after(self, store: MemoryStore) -> None:
        result = store.find_one_and_update(
            {"_id": 1}, {"$inc": {"age": 1}}, {"return_document": "after", "projection": {"age": 1}}
        )
        assert result.value == {"_id": 1, "age": 37}

    def test_no_match(self, store: MemoryStore) -> None:
        result = store.find_one_and_replace({"_id": 9}, {"a": 1}, {})
        assert result.value is None
        assert result.last_error_object.n == 0

    def test_upsert_insert(self) -> None:
        store = MemoryStore()
        result = store.find_one_and_update({"k": 1}, {"$set": {"v": 2}}, {"upsert": True})
        assert result.value is None
        assert result.last_error_object.updated_existing is False
        assert result.last_error_object.upserted is not None

    def test_find_one_and_delete(self, store: MemoryStore) -> None:
        result = store.find_one_and_delete({"name": "grace"}, {})
        assert result.value["_id"] == 3
        assert store.find_one({"_id": 3}) is None

    def test_delete_many(self, store: MemoryStore) -> None:
        assert store.delete_many({"age": {"$gt": 40}}, {}).deleted_count == 2
        assert store.delete_one({"_id": 99}, {}).deleted_count == 0


class TestAsyncMemoryStore:
    def test_wraps_sync_store(self) -> None:
        store = AsyncMemoryStore()

        async def scenario() -> list[dict]:
            await store.insert_one({"_id": 1, "a": 1}, {})
            await store.update_one({"_id": 1}, {"$set": {"a": 2}}, {})
            return await store.find({})

        assert asyncio.run(scenario()) == [{"_id": 1, "a": 2}]
        assert store.sync.find_one({"_id": 1}) == {"_id": 1, "a": 2}
