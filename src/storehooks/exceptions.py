"""Exception hierarchy for storehooks.

All exceptions inherit from :class:`StorehooksError`, which carries a
``code`` attribute mapped to a constant from :mod:`storehooks.error_codes`.
Collection verbs raise these instead of returning error values; everything
except :class:`UnsupportedMethodError` passes through the ``error`` hook
first.

Subclass hierarchy::

    StorehooksError (1)
    +-- InvalidArgumentError         (2)
    |   +-- UpsertOptionConflictError (4)
    +-- UnsupportedMethodError       (3)
    +-- DeprecatedMethodError        (5)
    +-- HookRejectionError           (6)
    +-- UnknownEventError            (7)
    +-- StoreError                   (8)
    |   +-- DuplicateKeyError        (11000)
    |   +-- StoreConnectionError     (9)
    +-- PluginError                  (10)
    |   +-- PluginNotFoundError
    |   +-- InvalidPluginError
    +-- ConfigError                  (1)
"""

from __future__ import annotations

from typing import Any

from storehooks.error_codes import (
    DEPRECATED_METHOD,
    DUPLICATE_KEY,
    GENERIC_FAILURE,
    HOOK_REJECTION,
    INVALID_ARGUMENT,
    PLUGIN_ERROR,
    STORE_CONNECTION_ERROR,
    STORE_ERROR,
    UNKNOWN_EVENT,
    UNSUPPORTED_METHOD,
    UPSERT_OPTION_CONFLICT,
)


class StorehooksError(Exception):
    """Base exception for all storehooks errors.

    Every subclass sets a class-level ``code`` corresponding to one of the
    constants in :mod:`storehooks.error_codes`.

    Args:
        message: Human-readable error description.
        code: Optional override for the class-level code.
    """

    code: int = GENERIC_FAILURE

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class InvalidArgumentError(StorehooksError):
    """Raised when a verb receives arguments of the wrong shape (e.g. a list for ``insert_one``)."""

    code = INVALID_ARGUMENT


class UpsertOptionConflictError(InvalidArgumentError):
    """Raised when ``upsert`` is passed to a verb other than ``find_one_and_upsert``."""

    code = UPSERT_OPTION_CONFLICT


class UnsupportedMethodError(StorehooksError):
    """Raised when a verb is excluded by the collection's allow-list.

    This error bypasses every hook, including ``error``.
    """

    code = UNSUPPORTED_METHOD


class DeprecatedMethodError(StorehooksError):
    """Raised by the deprecated collection verbs (``insert``, ``update``, ...)."""

    code = DEPRECATED_METHOD


class HookRejectionError(StorehooksError):
    """Raised when a ``before_*`` or ``after_*`` listener fails.

    The listener's own exception is available as ``__cause__``.

    Args:
        event: Name of the event whose listener failed.
        cause: The exception raised by the listener.
    """

    code = HOOK_REJECTION

    def __init__(self, event: str, cause: BaseException):
        super().__init__(f'Listener for "{event}" failed: {cause}')
        self.event = event


class UnknownEventError(StorehooksError):
    """Raised when registering a listener for an event outside the fixed set."""

    code = UNKNOWN_EVENT


class StoreError(StorehooksError):
    """Raised when the underlying store fails and the failure has no finer class."""

    code = STORE_ERROR

    def __init__(
        self,
        message: str,
        code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code)
        self.details = details or {}


class DuplicateKeyError(StoreError):
    """Raised by stores on a unique-index violation (code 11000)."""

    code = DUPLICATE_KEY


class StoreConnectionError(StoreError):
    """Raised on network-level failures talking to a remote store."""

    code = STORE_CONNECTION_ERROR


class PluginError(StorehooksError):
    """Raised when a plugin fails to resolve, register, or validate."""

    code = PLUGIN_ERROR


class PluginNotFoundError(PluginError):
    """Raised when a plugin name has no registered factory."""


class InvalidPluginError(PluginError):
    """Raised when a plugin value is not callable."""


class ConfigError(StorehooksError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    code = GENERIC_FAILURE
