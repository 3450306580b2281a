"""Numeric error codes carried by :class:`~storehooks.exceptions.StorehooksError`.

Each constant maps to a failure category and is referenced by the
corresponding exception subclass. Callers (and ``error`` hook listeners)
can branch on ``exc.code`` without importing the exception classes.

:data:`DUPLICATE_KEY` is the code document stores use for unique-index
violations. The upsert coordinator retries exactly one call that fails with
it.

Example::

    try:
        users.insert_one({"email": "a@example.com"})
    except StorehooksError as exc:
        if exc.code == DUPLICATE_KEY:
            ...
"""

GENERIC_FAILURE = 1
"""An unclassified error occurred."""

INVALID_ARGUMENT = 2
"""A verb was called with arguments of the wrong shape."""

UNSUPPORTED_METHOD = 3
"""The verb is excluded by the collection's ``change_data_methods`` allow-list."""

UPSERT_OPTION_CONFLICT = 4
"""An ``upsert`` option was passed to a verb other than ``find_one_and_upsert``."""

DEPRECATED_METHOD = 5
"""A deprecated verb was called."""

HOOK_REJECTION = 6
"""A ``before_*`` or ``after_*`` listener raised."""

UNKNOWN_EVENT = 7
"""A listener was registered for an event outside the fixed set."""

STORE_ERROR = 8
"""The underlying store failed."""

STORE_CONNECTION_ERROR = 9
"""The store could not be reached (timeout, DNS failure, connection refused)."""

PLUGIN_ERROR = 10
"""A plugin could not be resolved, validated, or applied."""

DUPLICATE_KEY = 11000
"""Unique-index violation reported by the store."""
