"""Store clients for storehooks.

A store is the document database client a collection delegates to. Any
object implementing :class:`~storehooks.store.base.Store` works; the
package bundles three:

Classes:
    :class:`MemoryStore` -- in-process store for tests and prototyping.
    :class:`AsyncMemoryStore` -- coroutine facade over a :class:`MemoryStore`.
    :class:`HttpStore` -- JSON-over-HTTP client backed by :class:`httpx.Client`.

Example::

    from storehooks.store import MemoryStore

    users = Collection(MemoryStore(), "users")
"""

from storehooks.store.base import AsyncStore, Store, as_store_error
from storehooks.store.http import HttpStore
from storehooks.store.memory import AsyncMemoryStore, MemoryStore

__all__ = [
    "AsyncMemoryStore",
    "AsyncStore",
    "HttpStore",
    "MemoryStore",
    "Store",
    "as_store_error",
]
