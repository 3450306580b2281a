"""Store contract consumed by collections.

A store is the external document database client that actually persists
data. Collections only ever call the methods listed on :class:`Store`
(or their coroutine twins on :class:`AsyncStore`) and read the attributes
of the returned results by name; see :mod:`storehooks.models` for the
shapes the bundled stores return.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from storehooks.error_codes import DUPLICATE_KEY
from storehooks.exceptions import DuplicateKeyError, StoreError, StorehooksError

Document = dict[str, Any]


class Store(Protocol):
    """Synchronous store contract."""

    def insert_one(self, doc: Document, options: dict[str, Any]) -> Any: ...

    def insert_many(self, docs: list[Document], options: dict[str, Any]) -> Any: ...

    def update_one(self, filter: Document, update: Document, options: dict[str, Any]) -> Any: ...

    def update_many(self, filter: Document, update: Document, options: dict[str, Any]) -> Any: ...

    def replace_one(
        self, filter: Document, replacement: Document, options: dict[str, Any]
    ) -> Any: ...

    def delete_one(self, filter: Document, options: dict[str, Any]) -> Any: ...

    def delete_many(self, filter: Document, options: dict[str, Any]) -> Any: ...

    def find_one_and_update(
        self, filter: Document, update: Document, options: dict[str, Any]
    ) -> Any: ...

    def find_one_and_replace(
        self, filter: Document, replacement: Document, options: dict[str, Any]
    ) -> Any: ...

    def find_one_and_delete(self, filter: Document, options: dict[str, Any]) -> Any: ...

    def find(self, query: Document, projection: Optional[Document]) -> list[Document]: ...

    def find_one(self, query: Document, projection: Optional[Document]) -> Optional[Document]: ...


class AsyncStore(Protocol):
    """Asynchronous store contract: the same verbs as :class:`Store`, as coroutines."""

    async def insert_one(self, doc: Document, options: dict[str, Any]) -> Any: ...

    async def insert_many(self, docs: list[Document], options: dict[str, Any]) -> Any: ...

    async def update_one(
        self, filter: Document, update: Document, options: dict[str, Any]
    ) -> Any: ...

    async def update_many(
        self, filter: Document, update: Document, options: dict[str, Any]
    ) -> Any: ...

    async def replace_one(
        self, filter: Document, replacement: Document, options: dict[str, Any]
    ) -> Any: ...

    async def delete_one(self, filter: Document, options: dict[str, Any]) -> Any: ...

    async def delete_many(self, filter: Document, options: dict[str, Any]) -> Any: ...

    async def find_one_and_update(
        self, filter: Document, update: Document, options: dict[str, Any]
    ) -> Any: ...

    async def find_one_and_replace(
        self, filter: Document, replacement: Document, options: dict[str, Any]
    ) -> Any: ...

    async def find_one_and_delete(self, filter: Document, options: dict[str, Any]) -> Any: ...

    async def find(self, query: Document, projection: Optional[Document]) -> list[Document]: ...

    async def find_one(
        self, query: Document, projection: Optional[Document]
    ) -> Optional[Document]: ...


def as_store_error(exc: Exception) -> StorehooksError:
    """Classify an exception raised by a store.

    storehooks errors pass through unchanged. Foreign exceptions become a
    :class:`~storehooks.exceptions.StoreError`, or a
    :class:`~storehooks.exceptions.DuplicateKeyError` when they carry the
    duplicate-key ``code``, with the original chained as ``__cause__``.
    """
    if isinstance(exc, StorehooksError):
        return exc
    code = getattr(exc, "code", None)
    if code == DUPLICATE_KEY:
        wrapped: StoreError = DuplicateKeyError(str(exc))
    else:
        wrapped = StoreError(str(exc) or type(exc).__name__)
    wrapped.__cause__ = exc
    return wrapped
