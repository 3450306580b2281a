"""storehooks -- lifecycle hooks in front of a document-store client.

A :class:`Collection` wraps a store and runs every mutating verb through a
pipeline: argument validation, ``before_*`` listeners, the store call,
result normalization, ``after_*`` listeners, and routing of any failure
through the ``error`` event before it reaches the caller.

Typical use::

    from storehooks import Collection, MemoryStore

    users = Collection(MemoryStore(), "users", database="app")
    users.add_plugin("timestamps")

    @users.on("after_insert_one")
    def announce(params):
        print("created", params["obj"]["_id"])

    users.insert_one({"name": "Ada"})

Modules:
    collection: Synchronous hooked collection.
    async_collection: Coroutine flavour of the same pipeline.
    hooks: Event names and the listener registry.
    operations: Per-verb validation, normalization and result shaping.
    upsert: Upsert routing and duplicate-key retry.
    store: Store contract plus in-memory and HTTP stores.
    plugins: Plugin registry, loader and bundled plugins.
    config: XDG-aware configuration resolution.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from storehooks.async_collection import AsyncCollection  # noqa: E402
from storehooks.collection import Collection  # noqa: E402
from storehooks.exceptions import (  # noqa: E402
    DeprecatedMethodError,
    DuplicateKeyError,
    HookRejectionError,
    InvalidArgumentError,
    PluginNotFoundError,
    StoreError,
    StorehooksError,
    UnsupportedMethodError,
    UpsertOptionConflictError,
)
from storehooks.hooks import HookEvent, HookRegistry  # noqa: E402
from storehooks.models import CollectionOptions, DeleteSummary, UpdateSummary  # noqa: E402
from storehooks.store import AsyncMemoryStore, HttpStore, MemoryStore  # noqa: E402

__all__ = [
    "AsyncCollection",
    "AsyncMemoryStore",
    "Collection",
    "CollectionOptions",
    "DeleteSummary",
    "DeprecatedMethodError",
    "DuplicateKeyError",
    "HookEvent",
    "HookRegistry",
    "HookRejectionError",
    "HttpStore",
    "InvalidArgumentError",
    "MemoryStore",
    "PluginNotFoundError",
    "StoreError",
    "StorehooksError",
    "UnsupportedMethodError",
    "UpdateSummary",
    "UpsertOptionConflictError",
    "__version__",
]
