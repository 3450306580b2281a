"""Split collection control flags out of a caller's options mapping.

Collections recognise a few options of their own that the store must never
see. :func:`extract_options` separates them from the rest without touching
the caller's mapping::

    flags, store_options = extract_options({"return_docs_only": False, "w": 1})
    # flags == {"return_docs_only": False, "return_result_only": True}
    # store_options == {"w": 1}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from storehooks.exceptions import InvalidArgumentError

DEFAULT_EXTEND_OPTIONS: dict[str, bool] = {
    "return_docs_only": True,
    "return_result_only": True,
}
"""Recognised control flags and their defaults.

``return_docs_only`` -- return the bare document(s) instead of the store's
native result (inserts and find-one-and-* verbs).

``return_result_only`` -- return the normalized summary instead of the
store's native result (update, replace and delete verbs).
"""


def ensure_options(options: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Return a shallow copy of *options*, ``{}`` for ``None``.

    Raises:
        InvalidArgumentError: If *options* is neither ``None`` nor a mapping.
    """
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        raise InvalidArgumentError("options parameter must be a mapping")
    return dict(options)


def extract_options(
    options: Optional[Mapping[str, Any]],
) -> tuple[dict[str, bool], dict[str, Any]]:
    """Split *options* into ``(flags, residual)``.

    *flags* holds every key of :data:`DEFAULT_EXTEND_OPTIONS`, taken from
    *options* when present and from the defaults otherwise. *residual* is a
    new dict with the remaining keys, forwarded to the store unchanged.
    """
    residual = ensure_options(options)
    flags = {
        name: bool(residual.pop(name)) if name in residual else default
        for name, default in DEFAULT_EXTEND_OPTIONS.items()
    }
    return flags, residual
