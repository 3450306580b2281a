"""Synchronous hooked collection.

This module provides :class:`Collection`, which holds a store client and
runs every mutating verb through the lifecycle pipeline described in
:mod:`storehooks.operations`:

- **Support check** -- verbs missing from ``change_data_methods`` raise
  :class:`~storehooks.exceptions.UnsupportedMethodError` without touching
  hooks or the store.
- **Hooks** -- ``before_*`` listeners run before the store call and
  ``after_*`` listeners after it, via the collection's
  :class:`~storehooks.hooks.HookRegistry`.
- **Error routing** -- every other failure goes through the ``error``
  event (:class:`~storehooks.interceptor.ErrorInterceptor`) before it is
  raised to the caller.
- **Upserts** -- ``find_one_and_upsert`` delegates to the
  :class:`~storehooks.upsert.UpsertCoordinator`.

See Also:
    :class:`~storehooks.async_collection.AsyncCollection` for the
    equivalent pipeline over a coroutine store.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from storehooks.config import collection_options, resolve_config
from storehooks.exceptions import DeprecatedMethodError, UnsupportedMethodError
from storehooks.hooks import HookEvent, HookRegistry, Listener
from storehooks.interceptor import ErrorInterceptor
from storehooks.models import CollectionOptions, GlobalConfig
from storehooks.operations import (
    DEPRECATED_METHODS,
    OPERATIONS,
    Operation,
    deprecation_message,
)
from storehooks.options import ensure_options, extract_options
from storehooks.plugins.loader import apply_plugin
from storehooks.plugins.registry import PluginFunc, PluginRegistry
from storehooks.store.base import as_store_error
from storehooks.upsert import UpsertCoordinator

logger = logging.getLogger(__name__)


def _deprecated(method: str) -> Callable[..., Any]:
    alternatives = DEPRECATED_METHODS[method]
    message = deprecation_message(method, alternatives)

    def deprecated(self: Any, *args: Any, **kwargs: Any) -> Any:
        raise DeprecatedMethodError(message)

    deprecated.__name__ = method
    deprecated.__doc__ = f"Deprecated. {message}."
    return deprecated


class BaseCollection:
    """State and behaviour shared by the sync and async collections.

    Args:
        store: The store client every verb delegates to.
        name: Collection name.
        options: :class:`~storehooks.models.CollectionOptions` (or a mapping
            validated into one). ``None`` allows every verb.
        database: Database name, used for the namespace in error contexts.
        plugin_registry: Registry used to resolve plugin names in
            :meth:`add_plugin`. Defaults to the process-wide registry.
    """

    def __init__(
        self,
        store: Any,
        name: str,
        options: Union[CollectionOptions, Mapping[str, Any], None] = None,
        *,
        database: Optional[str] = None,
        plugin_registry: Optional[PluginRegistry] = None,
    ) -> None:
        self._store = store
        self.name = name
        self.database = database
        if isinstance(options, CollectionOptions):
            self.options = options
        else:
            self.options = CollectionOptions.model_validate(dict(options or {}))
        self.hooks = HookRegistry()
        self._interceptor = ErrorInterceptor(self.hooks, self.namespace)
        self._upserts = UpsertCoordinator()
        self._plugin_registry = plugin_registry

    @classmethod
    def from_config(
        cls,
        store: Any,
        name: str,
        config: Optional[GlobalConfig] = None,
        *,
        plugin_registry: Optional[PluginRegistry] = None,
    ) -> Any:
        """Build a collection from its configured options and database.

        *config* defaults to :func:`~storehooks.config.resolve_config`, so
        ``collections.<name>.change_data_methods`` from the global or
        project config becomes the collection's allow-list.

        Raises:
            ConfigError: If the resolved configuration is invalid.
        """
        if config is None:
            config = resolve_config()
        return cls(
            store,
            name,
            collection_options(config, name),
            database=config.store.database,
            plugin_registry=plugin_registry,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.namespace!r})"

    @property
    def namespace(self) -> str:
        """``"<database>.<collection>"``, or the collection name without a database."""
        return f"{self.database}.{self.name}" if self.database else self.name

    @property
    def store(self) -> Any:
        """The wrapped store client."""
        return self._store

    # ------------------------------------------------------------------ #
    # Hooks and plugins
    # ------------------------------------------------------------------ #

    def on(self, event: Union[HookEvent, str], listener: Optional[Listener] = None) -> Any:
        """Register *listener* for *event*; see :meth:`HookRegistry.on`."""
        return self.hooks.on(event, listener)

    def add_plugin(self, plugin: Union[str, PluginFunc], options: Any = None) -> None:
        """Apply *plugin* (a registered name or a plugin function) to this collection.

        Raises:
            PluginNotFoundError: If *plugin* names no registered plugin.
            InvalidPluginError: If the plugin is not callable.
        """
        apply_plugin(self, plugin, options, self._plugin_registry)

    # ------------------------------------------------------------------ #
    # Pipeline helpers
    # ------------------------------------------------------------------ #

    def is_method_supported(self, method: str) -> bool:
        allowed = self.options.change_data_methods
        return allowed is None or method in allowed

    def _check_support(self, method: str) -> None:
        if not self.is_method_supported(method):
            raise UnsupportedMethodError(
                f'Method "{method}" for collection "{self.name}" is not supported'
            )

    def _prepare(
        self, operation: Operation, args: tuple, options: Optional[Mapping[str, Any]]
    ) -> tuple[dict[str, bool], dict[str, Any]]:
        """Validate the arguments and split off the control flags."""
        operation.validate(operation, args, ensure_options(options))
        return extract_options(options)

    def _store_call(
        self, operation: Operation, params: dict[str, Any]
    ) -> tuple[Callable[..., Any], tuple]:
        """Return the bound store method and its arguments for *operation*."""
        args = operation.store_args(params)
        if operation.is_upsert:
            method_name = self._upserts.store_method(params["modifier"])
            args = args[:-1] + (self._upserts.store_options(args[-1]),)
        else:
            method_name = operation.store_method
        return getattr(self._store, method_name), args

    # ------------------------------------------------------------------ #
    # Deprecated verbs
    # ------------------------------------------------------------------ #

    drop_all_indexes = _deprecated("drop_all_indexes")
    ensure_index = _deprecated("ensure_index")
    find_and_remove = _deprecated("find_and_remove")
    insert = _deprecated("insert")
    remove = _deprecated("remove")
    save = _deprecated("save")
    update = _deprecated("update")


class Collection(BaseCollection):
    """Hooked collection over a synchronous :class:`~storehooks.store.base.Store`.

    Every verb returns its result or raises. Failures other than
    :class:`~storehooks.exceptions.UnsupportedMethodError` pass through the
    ``error`` event first.

    Example::

        users = Collection(MemoryStore(), "users", database="app")

        @users.on("before_insert_one")
        def require_email(params):
            if "email" not in params["obj"]:
                raise InvalidArgumentError("email is required")

        users.insert_one({"email": "a@example.com"})
    """

    def _execute(
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
            self.hooks.trigger(operation.before, params)

            native = self._delegate(operation, params)
            normalized = operation.normalize(native)

            self.hooks.trigger(
                operation.after, operation.after_params(params, native, normalized)
            )
        except Exception as exc:
            raise self._interceptor.intercept(exc, fields)

        logger.debug("%s on %s completed", method, self.namespace)
        return operation.shape(flags, native, normalized)

    def _delegate(self, operation: Operation, params: dict[str, Any]) -> Any:
        store_method, args = self._store_call(operation, params)

        def attempt() -> Any:
            try:
                return store_method(*args)
            except Exception as exc:
                raise as_store_error(exc)

        if operation.is_upsert:
            return self._upserts.call(attempt)
        return attempt()

    # ------------------------------------------------------------------ #
    # Find (no hooks)
    # ------------------------------------------------------------------ #

    def find(
        self, query: Optional[Mapping[str, Any]] = None, projection: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Return the documents matching *query*, optionally projected."""
        return self._store.find(dict(query or {}), projection)

    def find_one(
        self, query: Optional[Mapping[str, Any]] = None, projection: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Return the first document matching *query*, or ``None``."""
        return self._store.find_one(dict(query or {}), projection)

    # ------------------------------------------------------------------ #
    # Insert
    # ------------------------------------------------------------------ #

    def insert_one(self, doc: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None) -> Any:
        """Insert one document.

        Returns:
            The persisted document, or the store's native result when
            ``return_docs_only`` is false.
        """
        return self._execute("insert_one", (doc,), options)

    def insert_many(self, docs: list[Any], options: Optional[Mapping[str, Any]] = None) -> Any:
        """Insert several documents (``ordered`` by default).

        Returns:
            The persisted documents, or the native result when
            ``return_docs_only`` is false.
        """
        return self._execute("insert_many", (docs,), options)

    # ------------------------------------------------------------------ #
    # Update
    # ------------------------------------------------------------------ #

    def update_one(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Update the first matching document.

        Returns:
            An :class:`~storehooks.models.UpdateSummary`, or the native
            result when ``return_result_only`` is false.
        """
        return self._execute("update_one", (filter, update), options)

    def update_many(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Update every matching document; returns like :meth:`update_one`."""
        return self._execute("update_many", (filter, update), options)

    def find_one_and_update(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Update the first matching document and return it (``*_update_one`` events)."""
        return self._execute("find_one_and_update", (filter, update), options)

    # ------------------------------------------------------------------ #
    # Delete
    # ------------------------------------------------------------------ #

    def delete_one(
        self, filter: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Delete the first matching document.

        Returns:
            A :class:`~storehooks.models.DeleteSummary`, or the native
            result when ``return_result_only`` is false.
        """
        return self._execute("delete_one", (filter,), options)

    def delete_many(
        self, filter: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Delete every matching document; returns like :meth:`delete_one`."""
        return self._execute("delete_many", (filter,), options)

    def find_one_and_delete(
        self, filter: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Delete the first matching document and return it (``*_delete_one`` events)."""
        return self._execute("find_one_and_delete", (filter,), options)

    # ------------------------------------------------------------------ #
    # Replace
    # ------------------------------------------------------------------ #

    def replace_one(
        self,
        filter: Mapping[str, Any],
        replacement: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Replace the first matching document; returns like :meth:`update_one`."""
        return self._execute("replace_one", (filter, replacement), options)

    def find_one_and_replace(
        self,
        filter: Mapping[str, Any],
        replacement: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Replace the first matching document and return it (``*_replace_one`` events)."""
        return self._execute("find_one_and_replace", (filter, replacement), options)

    # ------------------------------------------------------------------ #
    # Upsert
    # ------------------------------------------------------------------ #

    def find_one_and_upsert(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Update the matching document, or insert one if none matches.

        A modifier payload (``{"$set": ...}``) goes to the store's
        ``find_one_and_update``, anything else to ``find_one_and_replace``,
        always with ``upsert=True``. A duplicate-key failure caused by a
        concurrent upsert is retried once.

        Returns:
            The resulting document, or the native result when
            ``return_docs_only`` is false.
        """
        return self._execute("find_one_and_upsert", (filter, update), options)
