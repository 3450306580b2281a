"""In-process document store.

:class:`MemoryStore` implements the store contract on a plain list of
dicts. It is meant for tests, examples and prototyping, and supports the
subset of document-database behaviour the collection pipeline relies on:

* equality filters on (dotted) fields, plus ``$in``, ``$ne``, ``$exists``,
  ``$gt``, ``$gte``, ``$lt`` and ``$lte``;
* update operators ``$set``, ``$unset``, ``$inc``, ``$push`` and
  ``$setOnInsert``;
* ``upsert`` for updates, replacements and find-one-and-* verbs;
* unique indexes, violations of which raise
  :class:`~storehooks.exceptions.DuplicateKeyError` (code 11000);
* inclusion ``projection`` and ``return_document`` (``"before"`` or
  ``"after"``) for find-one-and-* verbs.

:class:`AsyncMemoryStore` exposes the same store through coroutines.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Optional

from storehooks.exceptions import DuplicateKeyError, StoreError
from storehooks.models import (
    DeleteResult,
    FindAndModifyResult,
    InsertResult,
    LastErrorObject,
    UpdateResult,
)
from storehooks.upsert import is_modifier

logger = logging.getLogger(__name__)

Document = dict[str, Any]

_MISSING = object()


# --- Dotted-path helpers ---


def _get_path(doc: Mapping[str, Any], path: str) -> Any:
    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _set_path(doc: Document, path: str, value: Any) -> None:
    parts = path.split(".")
    current = doc
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = value


def _unset_path(doc: Document, path: str) -> None:
    parts = path.split(".")
    current: Any = doc
    for part in parts[:-1]:
        current = current.get(part)
        if not isinstance(current, dict):
            return
    current.pop(parts[-1], None)


# --- Matching ---


def _compare(value: Any, operator: str, operand: Any) -> bool:
    if operator == "$in":
        return value is not _MISSING and value in operand
    if operator == "$ne":
        return value is _MISSING or value != operand
    if operator == "$exists":
        return (value is not _MISSING) == bool(operand)
    if value is _MISSING:
        return False
    try:
        if operator == "$gt":
            return value > operand
        if operator == "$gte":
            return value >= operand
        if operator == "$lt":
            return value < operand
        if operator == "$lte":
            return value <= operand
    except TypeError:
        return False
    raise StoreError(f"Unsupported query operator {operator}")


def _matches(doc: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    for path, expected in query.items():
        if path.startswith("$"):
            raise StoreError(f"Unsupported top-level query operator {path}")
        value = _get_path(doc, path)
        if is_modifier(expected):
            if not all(_compare(value, op, operand) for op, operand in expected.items()):
                return False
        elif value is _MISSING or value != expected:
            return False
    return True


def _equality_fields(query: Mapping[str, Any]) -> Document:
    """Fields of *query* that seed an upserted document."""
    seed: Document = {}
    for path, expected in query.items():
        if not path.startswith("$") and not is_modifier(expected):
            _set_path(seed, path, copy.deepcopy(expected))
    return seed


def _project(doc: Document, projection: Optional[Mapping[str, Any]]) -> Document:
    if not projection:
        return copy.deepcopy(doc)
    included = [path for path, flag in projection.items() if flag]
    if not included:
        excluded = copy.deepcopy(doc)
        for path in projection:
            _unset_path(excluded, path)
        return excluded
    projected: Document = {}
    if projection.get("_id", 1) and "_id" in doc:
        projected["_id"] = doc["_id"]
    for path in included:
        value = _get_path(doc, path)
        if value is not _MISSING:
            _set_path(projected, path, copy.deepcopy(value))
    return projected


class MemoryStore:
    """A document store held in memory.

    Documents get a hex ``_id`` on insert when they have none; like database
    drivers, the caller's document is updated with it.

    Example::

        store = MemoryStore()
        store.create_index("email", unique=True)
        store.insert_one({"email": "a@example.com"}, {})
    """

    def __init__(self) -> None:
        self._docs: list[Document] = []
        self._unique_fields: list[str] = ["_id"]

    # ------------------------------------------------------------------ #
    # Indexes
    # ------------------------------------------------------------------ #

    def create_index(self, field: str, unique: bool = False) -> str:
        """Declare an index on *field*; only unique indexes change behaviour."""
        if unique and field not in self._unique_fields:
            self._unique_fields.append(field)
        return f"{field}_1"

    def _check_unique(self, candidate: Document, exclude: Optional[Document] = None) -> None:
        for field in self._unique_fields:
            value = _get_path(candidate, field)
            if value is _MISSING:
                continue
            for doc in self._docs:
                if doc is exclude:
                    continue
                if _get_path(doc, field) == value:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error index: {field}_1 dup key: {{ {field}: {value!r} }}"
                    )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _matching(self, query: Mapping[str, Any]) -> list[Document]:
        return [doc for doc in self._docs if _matches(doc, query)]

    @staticmethod
    def _apply_update(doc: Document, update: Mapping[str, Any], inserting: bool) -> Document:
        if not is_modifier(update):
            raise StoreError("Update document requires atomic operators")
        updated = copy.deepcopy(doc)
        for operator, fields in update.items():
            for path, value in fields.items():
                if operator == "$set":
                    _set_path(updated, path, copy.deepcopy(value))
                elif operator == "$setOnInsert":
                    if inserting:
                        _set_path(updated, path, copy.deepcopy(value))
                elif operator == "$unset":
                    _unset_path(updated, path)
                elif operator == "$inc":
                    current = _get_path(updated, path)
                    _set_path(updated, path, (0 if current is _MISSING else current) + value)
                elif operator == "$push":
                    current = _get_path(updated, path)
                    items = [] if current is _MISSING else list(current)
                    items.append(copy.deepcopy(value))
                    _set_path(updated, path, items)
                else:
                    raise StoreError(f"Unknown modifier: {operator}")
        return updated

    @staticmethod
    def _check_replacement(replacement: Mapping[str, Any]) -> None:
        if any(key.startswith("$") for key in replacement):
            raise StoreError("Replacement document must not contain atomic operators")

    def _store(self, doc: Document) -> Document:
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", uuid.uuid4().hex)
        self._check_unique(stored)
        self._docs.append(stored)
        return stored

    def _write(self, current: Document, new: Document) -> bool:
        """Replace *current* in place with *new*; return whether anything changed."""
        new["_id"] = current["_id"]
        self._check_unique(new, exclude=current)
        changed = new != current
        current.clear()
        current.update(new)
        return changed

    def _upsert_doc(self, query: Mapping[str, Any], update: Optional[Mapping[str, Any]],
                    replacement: Optional[Mapping[str, Any]]) -> Document:
        if replacement is not None:
            seed = {"_id": query["_id"]} if "_id" in query else {}
            seed.update(copy.deepcopy(dict(replacement)))
            return self._store(seed)
        return self._store(self._apply_update(_equality_fields(query), update or {}, inserting=True))

    # ------------------------------------------------------------------ #
    # Insert
    # ------------------------------------------------------------------ #

    def insert_one(self, doc: Document, options: dict[str, Any]) -> InsertResult:
        stored = self._store(doc)
        doc["_id"] = stored["_id"]
        return InsertResult(ops=[doc], inserted_ids=[stored["_id"]])

    def insert_many(self, docs: list[Document], options: dict[str, Any]) -> InsertResult:
        ordered = options.get("ordered", True)
        inserted: list[Document] = []
        failure: Optional[DuplicateKeyError] = None
        for doc in docs:
            try:
                stored = self._store(doc)
            except DuplicateKeyError as exc:
                if ordered:
                    raise
                failure = failure or exc
                continue
            doc["_id"] = stored["_id"]
            inserted.append(doc)
        if failure is not None:
            raise failure
        return InsertResult(ops=inserted, inserted_ids=[doc["_id"] for doc in inserted])

    # ------------------------------------------------------------------ #
    # Update / replace
    # ------------------------------------------------------------------ #

    def _update(self, query: Document, update: Document, options: dict[str, Any],
                many: bool) -> UpdateResult:
        if not is_modifier(update):
            raise StoreError("Update document requires atomic operators")
        targets = self._matching(query)
        if not many:
            targets = targets[:1]
        if not targets:
            if options.get("upsert"):
                stored = self._upsert_doc(query, update, None)
                return UpdateResult(upserted_id=stored["_id"])
            return UpdateResult()
        modified = 0
        for doc in targets:
            if self._write(doc, self._apply_update(doc, update, inserting=False)):
                modified += 1
        return UpdateResult(matched_count=len(targets), modified_count=modified)

    def update_one(self, filter: Document, update: Document, options: dict[str, Any]) -> UpdateResult:
        return self._update(filter, update, options, many=False)

    def update_many(self, filter: Document, update: Document, options: dict[str, Any]) -> UpdateResult:
        return self._update(filter, update, options, many=True)

    def replace_one(self, filter: Document, replacement: Document,
                    options: dict[str, Any]) -> UpdateResult:
        self._check_replacement(replacement)
        targets = self._matching(filter)[:1]
        if not targets:
            if options.get("upsert"):
                stored = self._upsert_doc(filter, None, replacement)
                return UpdateResult(upserted_id=stored["_id"])
            return UpdateResult()
        changed = self._write(targets[0], copy.deepcopy(dict(replacement)))
        return UpdateResult(matched_count=1, modified_count=int(changed))

    # ------------------------------------------------------------------ #
    # Delete
    # ------------------------------------------------------------------ #

    def _delete(self, query: Document, many: bool) -> int:
        targets = self._matching(query)
        if not many:
            targets = targets[:1]
        for doc in targets:
            self._docs.remove(doc)
        return len(targets)

    def delete_one(self, filter: Document, options: dict[str, Any]) -> DeleteResult:
        return DeleteResult(deleted_count=self._delete(filter, many=False))

    def delete_many(self, filter: Document, options: dict[str, Any]) -> DeleteResult:
        return DeleteResult(deleted_count=self._delete(filter, many=True))

    # ------------------------------------------------------------------ #
    # Find-one-and-*
    # ------------------------------------------------------------------ #

    def _find_and_modify(self, query: Document, options: dict[str, Any],
                         update: Optional[Document] = None,
                         replacement: Optional[Document] = None) -> FindAndModifyResult:
        projection = options.get("projection")
        return_after = options.get("return_document", "before") == "after"
        targets = self._matching(query)[:1]

        if not targets:
            if not options.get("upsert"):
                return FindAndModifyResult(value=None, last_error_object=LastErrorObject(n=0))
            stored = self._upsert_doc(query, update, replacement)
            return FindAndModifyResult(
                value=_project(stored, projection) if return_after else None,
                last_error_object=LastErrorObject(n=1, updated_existing=False,
                                                  upserted=stored["_id"]),
            )

        current = targets[0]
        before = _project(current, projection)
        if replacement is not None:
            new = copy.deepcopy(dict(replacement))
        else:
            new = self._apply_update(current, update or {}, inserting=False)
        self._write(current, new)
        return FindAndModifyResult(
            value=_project(current, projection) if return_after else before,
            last_error_object=LastErrorObject(n=1, updated_existing=True),
        )

    def find_one_and_update(self, filter: Document, update: Document,
                            options: dict[str, Any]) -> FindAndModifyResult:
        if not is_modifier(update):
            raise StoreError("Update document requires atomic operators")
        return self._find_and_modify(filter, options, update=update)

    def find_one_and_replace(self, filter: Document, replacement: Document,
                             options: dict[str, Any]) -> FindAndModifyResult:
        self._check_replacement(replacement)
        return self._find_and_modify(filter, options, replacement=replacement)

    def find_one_and_delete(self, filter: Document, options: dict[str, Any]) -> FindAndModifyResult:
        targets = self._matching(filter)[:1]
        if not targets:
            return FindAndModifyResult(value=None, last_error_object=LastErrorObject(n=0))
        self._docs.remove(targets[0])
        return FindAndModifyResult(
            value=_project(targets[0], options.get("projection")),
            last_error_object=LastErrorObject(n=1),
        )

    # ------------------------------------------------------------------ #
    # Find
    # ------------------------------------------------------------------ #

    def find(self, query: Document, projection: Optional[Document] = None) -> list[Document]:
        return [_project(doc, projection) for doc in self._matching(query)]

    def find_one(self, query: Document, projection: Optional[Document] = None) -> Optional[Document]:
        targets = self._matching(query)
        return _project(targets[0], projection) if targets else None


class AsyncMemoryStore:
    """Coroutine facade over a :class:`MemoryStore`."""

    def __init__(self, store: Optional[MemoryStore] = None) -> None:
        self.sync = store or MemoryStore()

    def create_index(self, field: str, unique: bool = False) -> str:
        return self.sync.create_index(field, unique=unique)

    async def insert_one(self, doc: Document, options: dict[str, Any]) -> InsertResult:
        return self.sync.insert_one(doc, options)

    async def insert_many(self, docs: list[Document], options: dict[str, Any]) -> InsertResult:
        return self.sync.insert_many(docs, options)

    async def update_one(self, filter: Document, update: Document,
                         options: dict[str, Any]) -> UpdateResult:
        return self.sync.update_one(filter, update, options)

    async def update_many(self, filter: Document, update: Document,
                          options: dict[str, Any]) -> UpdateResult:
        return self.sync.update_many(filter, update, options)

    async def replace_one(self, filter: Document, replacement: Document,
                          options: dict[str, Any]) -> UpdateResult:
        return self.sync.replace_one(filter, replacement, options)

    async def delete_one(self, filter: Document, options: dict[str, Any]) -> DeleteResult:
        return self.sync.delete_one(filter, options)

    async def delete_many(self, filter: Document, options: dict[str, Any]) -> DeleteResult:
        return self.sync.delete_many(filter, options)

    async def find_one_and_update(self, filter: Document, update: Document,
                                  options: dict[str, Any]) -> FindAndModifyResult:
        return self.sync.find_one_and_update(filter, update, options)

    async def find_one_and_replace(self, filter: Document, replacement: Document,
                                   options: dict[str, Any]) -> FindAndModifyResult:
        return self.sync.find_one_and_replace(filter, replacement, options)

    async def find_one_and_delete(self, filter: Document,
                                  options: dict[str, Any]) -> FindAndModifyResult:
        return self.sync.find_one_and_delete(filter, options)

    async def find(self, query: Document, projection: Optional[Document] = None) -> list[Document]:
        return self.sync.find(query, projection)

    async def find_one(self, query: Document,
                       projection: Optional[Document] = None) -> Optional[Document]:
        return self.sync.find_one(query, projection)
