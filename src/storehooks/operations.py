"""Declarative description of every hooked collection verb.

Each verb is an :class:`Operation` record: which events bracket it, which
store method it delegates to, how its arguments are validated, and how the
store's native result is normalized and shaped for the caller. The
pipelines in :mod:`storehooks.collection` and
:mod:`storehooks.async_collection` are generic over these records, so both
flavours run the same steps in the same order:

1. support check
2. argument validation
3. option extraction
4. ``before_*`` hook
5. store call
6. result normalization
7. ``after_*`` hook
8. result shaping

Native results are read by attribute (or key) name, so any store returning
objects with ``ops``, ``matched_count``, ``last_error_object`` ... works.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from storehooks.exceptions import InvalidArgumentError, UpsertOptionConflictError
from storehooks.hooks import HookEvent
from storehooks.models import DeleteSummary, UpdateSummary

RETURN_DOCS_ONLY = "return_docs_only"
RETURN_RESULT_ONLY = "return_result_only"


def read(result: Any, name: str, default: Any = None) -> Any:
    """Read *name* from a native result object or mapping."""
    if result is None:
        return default
    if isinstance(result, Mapping):
        return result.get(name, default)
    return getattr(result, name, default)


# --- Validators ---


def _require_mapping(value: Any, name: str) -> None:
    if not isinstance(value, Mapping):
        raise InvalidArgumentError(f"{name} parameter must be a mapping")


def _reject_upsert(method: str, options: Mapping[str, Any]) -> None:
    if "upsert" in options:
        raise UpsertOptionConflictError(
            f'Cannot upsert using "{method}", use "find_one_and_upsert" method instead'
        )


def _validate_insert_one(op: Operation, args: tuple, options: Mapping[str, Any]) -> None:
    _require_mapping(args[0], "doc")


def _validate_insert_many(op: Operation, args: tuple, options: Mapping[str, Any]) -> None:
    docs = args[0]
    if not isinstance(docs, (list, tuple)) or not all(isinstance(d, Mapping) for d in docs):
        raise InvalidArgumentError("docs parameter must be a list of documents")


def _validate_filter(op: Operation, args: tuple, options: Mapping[str, Any]) -> None:
    _require_mapping(args[0], "filter")


def _validate_change(op: Operation, args: tuple, options: Mapping[str, Any]) -> None:
    _require_mapping(args[0], "filter")
    _require_mapping(args[1], op.fields[1])
    _reject_upsert(op.method, options)


def _validate_upsert(op: Operation, args: tuple, options: Mapping[str, Any]) -> None:
    _require_mapping(args[0], "filter")
    _require_mapping(args[1], "update")


# --- Normalizers ---


def _first_doc(native: Any) -> Any:
    ops = read(native, "ops") or []
    return ops[0] if ops else None


def _all_docs(native: Any) -> list[Any]:
    return list(read(native, "ops") or [])


def _update_summary(native: Any) -> UpdateSummary:
    return UpdateSummary(
        matched_count=read(native, "matched_count") or 0,
        modified_count=read(native, "modified_count") or 0,
        upserted_id=read(native, "upserted_id"),
    )


def _delete_summary(native: Any) -> DeleteSummary:
    return DeleteSummary(deleted_count=read(native, "deleted_count") or 0)


def _last_error_n(native: Any) -> int:
    return read(read(native, "last_error_object"), "n", 0) or 0


def _find_and_modify_summary(native: Any) -> UpdateSummary:
    matched = _last_error_n(native)
    return UpdateSummary(matched_count=matched, modified_count=matched, upserted_id=None)


def _find_and_delete_summary(native: Any) -> DeleteSummary:
    return DeleteSummary(deleted_count=_last_error_n(native))


def _value(native: Any) -> Any:
    return read(native, "value")


# --- After-stage fields ---


def _after_obj(native: Any, normalized: Any) -> dict[str, Any]:
    return {"obj": normalized}


def _after_objs(native: Any, normalized: Any) -> dict[str, Any]:
    return {"objs": normalized}


def _after_result(native: Any, normalized: Any) -> dict[str, Any]:
    return {"result": normalized}


def _after_upsert(native: Any, normalized: Any) -> dict[str, Any]:
    updated = read(read(native, "last_error_object"), "updated_existing", False)
    return {"obj": normalized, "is_updated": bool(updated)}


@dataclass(frozen=True)
class Operation:
    """One hooked verb.

    Attributes:
        method: Public verb name, also the name checked against
            ``change_data_methods``.
        before: Event triggered before the store call.
        after: Event triggered after the store call.
        fields: Event-param names of the verb's positional arguments.
        store_method: Store method called with the verb's arguments and
            the residual options. ``None`` when the upsert coordinator picks it.
        return_flag: Control flag deciding between the unwrapped and the
            native result.
        validate: Raises on malformed arguments.
        normalize: Turns the native result into the normalized result.
        after_fields: Extra params for the ``after_*`` event.
        unwrap: Value returned when *return_flag* is true.
        default_options: Options used when the caller passes ``None``.
    """

    method: str
    before: HookEvent
    after: HookEvent
    fields: tuple[str, ...]
    store_method: Optional[str]
    return_flag: str
    validate: Callable[[Operation, tuple, Mapping[str, Any]], None]
    normalize: Callable[[Any], Any]
    after_fields: Callable[[Any, Any], dict[str, Any]]
    unwrap: Callable[[Any, Any], Any]
    default_options: dict[str, Any] = field(default_factory=dict)

    @property
    def is_upsert(self) -> bool:
        return self.store_method is None

    def snapshot(self, args: tuple, options: Any) -> dict[str, Any]:
        """Operation fields used in error contexts."""
        fields = dict(zip(self.fields, args))
        fields["options"] = options
        fields["method"] = self.method
        return fields

    def before_params(self, args: tuple, options: dict[str, Any]) -> dict[str, Any]:
        params = dict(zip(self.fields, args))
        params["options"] = options
        params["meta"] = {}
        return params

    def after_params(self, params: dict[str, Any], native: Any, normalized: Any) -> dict[str, Any]:
        after = dict(params)
        after.update(self.after_fields(native, normalized))
        return after

    def store_args(self, params: dict[str, Any]) -> tuple:
        """Positional arguments for the store call, read back from *params*."""
        return tuple(params[name] for name in self.fields) + (params["options"],)

    def shape(self, flags: Mapping[str, bool], native: Any, normalized: Any) -> Any:
        if flags[self.return_flag]:
            return self.unwrap(native, normalized)
        return native


def _returns_normalized(native: Any, normalized: Any) -> Any:
    return normalized


def _returns_value(native: Any, normalized: Any) -> Any:
    return _value(native)


OPERATIONS: dict[str, Operation] = {
    op.method: op
    for op in (
        Operation(
            method="insert_one",
            before=HookEvent.BEFORE_INSERT_ONE,
            after=HookEvent.AFTER_INSERT_ONE,
            fields=("obj",),
            store_method="insert_one",
            return_flag=RETURN_DOCS_ONLY,
            validate=_validate_insert_one,
            normalize=_first_doc,
            after_fields=_after_obj,
            unwrap=_returns_normalized,
        ),
        Operation(
            method="insert_many",
            before=HookEvent.BEFORE_INSERT_MANY,
            after=HookEvent.AFTER_INSERT_MANY,
            fields=("objs",),
            store_method="insert_many",
            return_flag=RETURN_DOCS_ONLY,
            validate=_validate_insert_many,
            normalize=_all_docs,
            after_fields=_after_objs,
            unwrap=_returns_normalized,
            default_options={"ordered": True},
        ),
        Operation(
            method="update_one",
            before=HookEvent.BEFORE_UPDATE_ONE,
            after=HookEvent.AFTER_UPDATE_ONE,
            fields=("condition", "modifier"),
            store_method="update_one",
            return_flag=RETURN_RESULT_ONLY,
            validate=_validate_change,
            normalize=_update_summary,
            after_fields=_after_result,
            unwrap=_returns_normalized,
        ),
        Operation(
            method="update_many",
            before=HookEvent.BEFORE_UPDATE_MANY,
            after=HookEvent.AFTER_UPDATE_MANY,
            fields=("condition", "modifier"),
            store_method="update_many",
            return_flag=RETURN_RESULT_ONLY,
            validate=_validate_change,
            normalize=_update_summary,
            after_fields=_after_result,
            unwrap=_returns_normalized,
        ),
        Operation(
            method="find_one_and_update",
            before=HookEvent.BEFORE_UPDATE_ONE,
            after=HookEvent.AFTER_UPDATE_ONE,
            fields=("condition", "modifier"),
            store_method="find_one_and_update",
            return_flag=RETURN_DOCS_ONLY,
            validate=_validate_change,
            normalize=_find_and_modify_summary,
            after_fields=_after_result,
            unwrap=_returns_value,
        ),
        Operation(
            method="delete_one",
            before=HookEvent.BEFORE_DELETE_ONE,
            after=HookEvent.AFTER_DELETE_ONE,
            fields=("condition",),
            store_method="delete_one",
            return_flag=RETURN_RESULT_ONLY,
            validate=_validate_filter,
            normalize=_delete_summary,
            after_fields=_after_result,
            unwrap=_returns_normalized,
        ),
        Operation(
            method="delete_many",
            before=HookEvent.BEFORE_DELETE_MANY,
            after=HookEvent.AFTER_DELETE_MANY,
            fields=("condition",),
            store_method="delete_many",
            return_flag=RETURN_RESULT_ONLY,
            validate=_validate_filter,
            normalize=_delete_summary,
            after_fields=_after_result,
            unwrap=_returns_normalized,
        ),
        Operation(
            method="find_one_and_delete",
            before=HookEvent.BEFORE_DELETE_ONE,
            after=HookEvent.AFTER_DELETE_ONE,
            fields=("condition",),
            store_method="find_one_and_delete",
            return_flag=RETURN_DOCS_ONLY,
            validate=_validate_filter,
            normalize=_find_and_delete_summary,
            after_fields=_after_result,
            unwrap=_returns_value,
        ),
        Operation(
            method="replace_one",
            before=HookEvent.BEFORE_REPLACE_ONE,
            after=HookEvent.AFTER_REPLACE_ONE,
            fields=("condition", "replacement"),
            store_method="replace_one",
            return_flag=RETURN_RESULT_ONLY,
            validate=_validate_change,
            normalize=_update_summary,
            after_fields=_after_result,
            unwrap=_returns_normalized,
        ),
        Operation(
            method="find_one_and_replace",
            before=HookEvent.BEFORE_REPLACE_ONE,
            after=HookEvent.AFTER_REPLACE_ONE,
            fields=("condition", "replacement"),
            store_method="find_one_and_replace",
            return_flag=RETURN_DOCS_ONLY,
            validate=_validate_change,
            normalize=_find_and_modify_summary,
            after_fields=_after_result,
            unwrap=_returns_value,
        ),
        Operation(
            method="find_one_and_upsert",
            before=HookEvent.BEFORE_UPSERT_ONE,
            after=HookEvent.AFTER_UPSERT_ONE,
            fields=("condition", "modifier"),
            store_method=None,
            return_flag=RETURN_DOCS_ONLY,
            validate=_validate_upsert,
            normalize=_value,
            after_fields=_after_upsert,
            unwrap=_returns_normalized,
        ),
    )
}
"""Every hooked verb, keyed by its public name."""


DEPRECATED_METHODS: dict[str, tuple[str, ...]] = {
    "drop_all_indexes": ("drop_indexes",),
    "ensure_index": ("create_indexes",),
    "find_and_remove": ("find_one_and_delete",),
    "insert": ("insert_one", "insert_many", "bulk_write"),
    "remove": ("delete_one", "delete_many", "bulk_write"),
    "save": ("insert_one", "insert_many", "update_one", "update_many"),
    "update": ("update_one", "update_many", "bulk_write"),
}
"""Deprecated verbs and the verbs to use instead."""


def deprecation_message(method: str, alternatives: tuple[str, ...]) -> str:
    """Build the message raised by a deprecated verb.

    Example::

        >>> deprecation_message("insert", ("insert_one", "insert_many", "bulk_write"))
        'Method "insert" is deprecated, use "insert_one", "insert_many" or "bulk_write" instead'
    """
    if len(alternatives) == 1:
        names = alternatives[0]
    else:
        names = '", "'.join(alternatives[:-1]) + '" or "' + alternatives[-1]
    return f'Method "{method}" is deprecated, use "{names}" instead'
