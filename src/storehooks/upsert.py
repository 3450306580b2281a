"""Update-or-insert with recovery from the duplicate-key race.

Two concurrent upserts with the same filter can both miss the match check
and both try to insert; the loser then fails with a duplicate-key error
although an upsert should have succeeded (MongoDB SERVER-14322). At that
point the winning document exists, so repeating the identical call matches
it and updates it. :class:`UpsertCoordinator` repeats the call exactly once
and takes the second outcome as final.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, TypeVar

from storehooks.error_codes import DUPLICATE_KEY

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_modifier(payload: Any) -> bool:
    """Return ``True`` if *payload* is an update document (``{"$set": ...}``).

    A payload counts as a modifier when it is a non-empty mapping and every
    key is an update operator.
    """
    if not isinstance(payload, Mapping) or not payload:
        return False
    return all(isinstance(key, str) and key.startswith("$") for key in payload)


def is_duplicate_key_error(exc: BaseException) -> bool:
    return getattr(exc, "code", None) == DUPLICATE_KEY


class UpsertCoordinator:
    """Chooses the store verb for an upsert and retries the duplicate-key race once."""

    UPDATE_METHOD = "find_one_and_update"
    REPLACE_METHOD = "find_one_and_replace"

    def store_method(self, payload: Any) -> str:
        """Return the store verb for *payload*: update for modifiers, replace otherwise."""
        return self.UPDATE_METHOD if is_modifier(payload) else self.REPLACE_METHOD

    @staticmethod
    def store_options(options: Mapping[str, Any]) -> dict[str, Any]:
        """Return a copy of *options* with the store's upsert flag forced on."""
        forced = dict(options)
        forced["upsert"] = True
        return forced

    def call(self, attempt: Callable[[], T]) -> T:
        """Run *attempt*; on a duplicate-key error run it once more and return that outcome."""
        try:
            return attempt()
        except Exception as exc:
            if not is_duplicate_key_error(exc):
                raise
            logger.info("Upsert hit a duplicate key, retrying once: %s", exc)
        return attempt()

    async def acall(self, attempt: Callable[[], Awaitable[T]]) -> T:
        """Asynchronous :meth:`call`."""
        try:
            return await attempt()
        except Exception as exc:
            if not is_duplicate_key_error(exc):
                raise
            logger.info("Upsert hit a duplicate key, retrying once: %s", exc)
        return await attempt()
