"""Event names and the listener registry for the collection lifecycle.

This module provides two core components:

* :class:`HookEvent` -- the fixed set of event names. Each verb has a
  ``before_*``/``after_*`` pair, plus a single ``error`` event.
* :class:`HookRegistry` -- owns the listener lists of one collection and
  runs an event's listeners sequentially, stopping at the first failure.

A listener is any callable taking the event params mapping. Returning
normally lets the chain continue; raising stops it::

    def require_owner(params):
        if "owner" not in params["obj"]:
            raise ValueError("owner is required")

    registry.on(HookEvent.BEFORE_INSERT_ONE, require_owner)

Listeners are registered during setup (usually by plugins) and only read
while operations run, so the registry does no locking.
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Callable, Optional, Union

from storehooks.exceptions import HookRejectionError, StorehooksError, UnknownEventError

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], Any]


class HookEvent(str, Enum):
    """Every event a collection can trigger."""

    BEFORE_INSERT_ONE = "before_insert_one"
    AFTER_INSERT_ONE = "after_insert_one"
    BEFORE_INSERT_MANY = "before_insert_many"
    AFTER_INSERT_MANY = "after_insert_many"
    BEFORE_UPDATE_ONE = "before_update_one"
    AFTER_UPDATE_ONE = "after_update_one"
    BEFORE_UPDATE_MANY = "before_update_many"
    AFTER_UPDATE_MANY = "after_update_many"
    BEFORE_DELETE_ONE = "before_delete_one"
    AFTER_DELETE_ONE = "after_delete_one"
    BEFORE_DELETE_MANY = "before_delete_many"
    AFTER_DELETE_MANY = "after_delete_many"
    BEFORE_REPLACE_ONE = "before_replace_one"
    AFTER_REPLACE_ONE = "after_replace_one"
    BEFORE_UPSERT_ONE = "before_upsert_one"
    AFTER_UPSERT_ONE = "after_upsert_one"
    ERROR = "error"


class HookRegistry:
    """Listener lists for the fixed event set of one collection.

    The registry is created once per collection and lives as long as it
    does. Listeners for an event run strictly in registration order and all
    receive the same params mapping, so a ``before_*`` listener can leave
    data in ``params["meta"]`` for the matching ``after_*`` listener.

    Failure semantics:

    * ``before_*``/``after_*``: a listener raising a
      :class:`~storehooks.exceptions.StorehooksError` propagates it
      unchanged; any other exception is wrapped in
      :class:`~storehooks.exceptions.HookRejectionError`.
    * ``error``: listener exceptions propagate unchanged, so an error
      listener can translate the failure delivered to the caller.

    In both cases the remaining listeners for the event are skipped.
    """

    def __init__(self) -> None:
        self._listeners: dict[HookEvent, list[Listener]] = {event: [] for event in HookEvent}

    @staticmethod
    def events() -> list[str]:
        """Return the names of every supported event."""
        return [event.value for event in HookEvent]

    @staticmethod
    def _resolve(event: Union[HookEvent, str]) -> HookEvent:
        try:
            return HookEvent(event)
        except ValueError:
            raise UnknownEventError(f'Unknown event "{event}"') from None

    def on(
        self, event: Union[HookEvent, str], listener: Optional[Listener] = None
    ) -> Any:
        """Append *listener* to *event*'s chain.

        When *listener* is omitted, returns a decorator that registers the
        decorated function and hands it back unchanged.

        Raises:
            UnknownEventError: If *event* is not one of :class:`HookEvent`.
            TypeError: If *listener* is not callable.
        """
        resolved = self._resolve(event)
        if listener is None:

            def decorator(func: Listener) -> Listener:
                self.on(resolved, func)
                return func

            return decorator

        if not callable(listener):
            raise TypeError(f"Listener for {resolved.value!r} must be callable")
        self._listeners[resolved].append(listener)
        logger.debug("Registered listener %r for %s", listener, resolved.value)
        return listener

    def listeners(self, event: Union[HookEvent, str]) -> list[Listener]:
        """Return a copy of the listeners registered for *event*."""
        return list(self._listeners[self._resolve(event)])

    def trigger(self, event: Union[HookEvent, str], params: dict[str, Any]) -> None:
        """Run every listener of *event* in order with *params*.

        Returns once the last listener completes, immediately when none are
        registered. Listeners must be plain callables: a listener returning
        an awaitable fails the event, since nothing here can await it.
        """
        resolved = self._resolve(event)
        for listener in self._listeners[resolved]:
            try:
                result = listener(params)
                if inspect.isawaitable(result):
                    _discard(result)
                    raise TypeError(
                        f"Listener {listener!r} returned an awaitable; "
                        "synchronous collections need plain callables"
                    )
            except Exception as exc:
                raise self._rejection(resolved, exc)

    async def atrigger(self, event: Union[HookEvent, str], params: dict[str, Any]) -> None:
        """Asynchronous :meth:`trigger`: awaitable listener results are awaited in turn."""
        resolved = self._resolve(event)
        for listener in self._listeners[resolved]:
            try:
                result = listener(params)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                raise self._rejection(resolved, exc)

    @staticmethod
    def _rejection(event: HookEvent, exc: Exception) -> Exception:
        logger.debug("Listener for %s failed: %s", event.value, exc)
        if event is HookEvent.ERROR or isinstance(exc, StorehooksError):
            return exc
        rejection = HookRejectionError(event.value, exc)
        rejection.__cause__ = exc
        return rejection


def _discard(awaitable: Any) -> None:
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()
