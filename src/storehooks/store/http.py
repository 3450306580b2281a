"""Document store reached over HTTP.

This module provides :class:`HttpStore`, a store client that wraps
:class:`httpx.Client` and speaks a small JSON protocol: every verb is a
``POST`` to ``<base_url>/<database>/<collection>/<action>`` whose body
carries the verb's arguments::

    POST /app/users/updateOne
    {"filter": {"_id": 1}, "update": {"$set": {"a": 2}}, "options": {}}

    200 {"matchedCount": 1, "modifiedCount": 1, "upsertedId": null}

Error responses are mapped to the storehooks hierarchy:

* a body with ``"code": 11000`` -> :class:`~storehooks.exceptions.DuplicateKeyError`;
* any other 4xx/5xx -> :class:`~storehooks.exceptions.StoreError`;
* connection and timeout failures ->
  :class:`~storehooks.exceptions.StoreConnectionError`.

No retry happens at this level: the only retried failure is the upsert
duplicate-key race, handled by the collection.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic_core import to_json

from storehooks.error_codes import DUPLICATE_KEY
from storehooks.exceptions import DuplicateKeyError, StoreConnectionError, StoreError
from storehooks.models import (
    DeleteResult,
    FindAndModifyResult,
    InsertResult,
    LastErrorObject,
    StoreConfig,
    UpdateResult,
)

logger = logging.getLogger(__name__)

Document = dict[str, Any]


def _update_result(data: dict[str, Any]) -> UpdateResult:
    return UpdateResult(
        matched_count=data.get("matchedCount", 0),
        modified_count=data.get("modifiedCount", 0),
        upserted_id=data.get("upsertedId"),
    )


def _find_and_modify_result(data: dict[str, Any]) -> FindAndModifyResult:
    leo = data.get("lastErrorObject")
    return FindAndModifyResult(
        value=data.get("value"),
        last_error_object=LastErrorObject(
            n=leo.get("n", 0),
            updated_existing=bool(leo.get("updatedExisting", False)),
            upserted=leo.get("upserted"),
        )
        if leo is not None
        else None,
        ok=data.get("ok", 1),
    )


class HttpStore:
    """Store client for one remote collection.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        config: Connection settings (``base_url``, ``database``, timeout,
            SSL verification, extra headers).
        collection: Name of the remote collection.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        with HttpStore(StoreConfig(base_url="https://docs.internal"), "users") as store:
            users = Collection(store, "users", database=store.database)
            users.insert_one({"name": "Ada"})
    """

    def __init__(
        self,
        config: StoreConfig,
        collection: str,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._collection = collection
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def database(self) -> str:
        return self._config.database

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpStore:
        self._client = httpx.Client(
            base_url=self._config.base_url or "",
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            headers={"Accept": "application/json", **self._config.headers},
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def _post(self, action: str, body: dict[str, Any]) -> dict[str, Any]:
        assert self._client is not None, "Store not opened -- use as context manager"

        path = f"/{self._config.database}/{self._collection}/{action}"
        logger.debug("POST %s", path)
        try:
            response = self._client.post(
                path,
                content=to_json(body),
                headers={"Content-Type": "application/json"},
            )
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            raise StoreConnectionError(f"Store request {action} failed: {exc}") from exc

        self._map_response_error(response)
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"Invalid JSON in {action} response") from exc

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
        except ValueError:
            detail = {"message": response.text[:200]}
        if not isinstance(detail, dict):
            detail = {"message": str(detail)}

        msg = detail.get("errmsg") or detail.get("message") or detail.get("error") or ""
        if detail.get("code") == DUPLICATE_KEY:
            raise DuplicateKeyError(msg or "Duplicate key", details=detail)
        prefix = f"HTTP {status}"
        raise StoreError(f"{prefix}: {msg}" if msg else prefix, details=detail)

    # ------------------------------------------------------------------ #
    # Store contract
    # ------------------------------------------------------------------ #

    def insert_one(self, doc: Document, options: dict[str, Any]) -> InsertResult:
        data = self._post("insertOne", {"document": doc, "options": options})
        inserted_id = data.get("insertedId", doc.get("_id"))
        doc.setdefault("_id", inserted_id)
        return InsertResult(ops=[doc], inserted_ids=[inserted_id])

    def insert_many(self, docs: list[Document], options: dict[str, Any]) -> InsertResult:
        data = self._post("insertMany", {"documents": docs, "options": options})
        inserted_ids = list(data.get("insertedIds", []))
        for doc, inserted_id in zip(docs, inserted_ids):
            doc.setdefault("_id", inserted_id)
        return InsertResult(ops=docs[: len(inserted_ids)], inserted_ids=inserted_ids)

    def update_one(self, filter: Document, update: Document, options: dict[str, Any]) -> UpdateResult:
        return _update_result(
            self._post("updateOne", {"filter": filter, "update": update, "options": options})
        )

    def update_many(self, filter: Document, update: Document, options: dict[str, Any]) -> UpdateResult:
        return _update_result(
            self._post("updateMany", {"filter": filter, "update": update, "options": options})
        )

    def replace_one(
        self, filter: Document, replacement: Document, options: dict[str, Any]
    ) -> UpdateResult:
        return _update_result(
            self._post(
                "replaceOne", {"filter": filter, "replacement": replacement, "options": options}
            )
        )

    def delete_one(self, filter: Document, options: dict[str, Any]) -> DeleteResult:
        data = self._post("deleteOne", {"filter": filter, "options": options})
        return DeleteResult(deleted_count=data.get("deletedCount", 0))

    def delete_many(self, filter: Document, options: dict[str, Any]) -> DeleteResult:
        data = self._post("deleteMany", {"filter": filter, "options": options})
        return DeleteResult(deleted_count=data.get("deletedCount", 0))

    def find_one_and_update(
        self, filter: Document, update: Document, options: dict[str, Any]
    ) -> FindAndModifyResult:
        return _find_and_modify_result(
            self._post(
                "findOneAndUpdate", {"filter": filter, "update": update, "options": options}
            )
        )

    def find_one_and_replace(
        self, filter: Document, replacement: Document, options: dict[str, Any]
    ) -> FindAndModifyResult:
        return _find_and_modify_result(
            self._post(
                "findOneAndReplace",
                {"filter": filter, "replacement": replacement, "options": options},
            )
        )

    def find_one_and_delete(self, filter: Document, options: dict[str, Any]) -> FindAndModifyResult:
        return _find_and_modify_result(
            self._post("findOneAndDelete", {"filter": filter, "options": options})
        )

    def find(self, query: Document, projection: Optional[Document] = None) -> list[Document]:
        data = self._post("find", {"filter": query, "projection": projection})
        return list(data.get("documents", []))

    def find_one(self, query: Document, projection: Optional[Document] = None) -> Optional[Document]:
        data = self._post("findOne", {"filter": query, "projection": projection})
        return data.get("document")
