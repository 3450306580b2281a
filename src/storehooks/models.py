"""Canonical Pydantic models shared across all storehooks modules.

The models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CollectionOptions`, :class:`StoreConfig`, :class:`PluginsConfig`
    and :class:`GlobalConfig`.

**Native result models** -- what the bundled stores return from each verb:
    :class:`InsertResult`, :class:`UpdateResult`, :class:`DeleteResult`,
    :class:`LastErrorObject` and :class:`FindAndModifyResult`.

**Normalized result models** -- the narrow summaries handed to ``after_*``
listeners and returned to callers by default:
    :class:`UpdateSummary` and :class:`DeleteSummary`.

The normalizers in :mod:`storehooks.operations` read native results by
attribute name, so third-party stores only need to expose the same
attributes, not these exact classes.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class CollectionOptions(BaseModel):
    """Per-collection settings consumed by the support check.

    When ``change_data_methods`` is ``None`` every verb is allowed.
    Otherwise only the listed verbs run; the rest raise
    :class:`~storehooks.exceptions.UnsupportedMethodError`.

    Example::

        CollectionOptions(change_data_methods=["insert_one", "find_one_and_upsert"])
    """

    change_data_methods: Optional[list[str]] = Field(
        default=None, description="Allow-list of verb names; None allows all"
    )


class StoreConfig(BaseModel):
    """Connection settings for :class:`~storehooks.store.http.HttpStore`."""

    base_url: Optional[str] = Field(default=None, description="Store service base URL")
    database: str = Field(default="test", description="Database name")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers sent with every request"
    )


class PluginsConfig(BaseModel):
    """Explicit plugin allow/deny lists stored in :class:`GlobalConfig`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/storehooks/config.json``.

    Loaded and saved by :func:`~storehooks.config.load_global_config` and
    :func:`~storehooks.config.save_global_config`. See
    :func:`~storehooks.config.resolve_config` for the precedence chain.
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    collections: dict[str, CollectionOptions] = Field(default_factory=dict)


# --- Native results ---


class InsertResult(BaseModel):
    """Result of ``insert_one`` / ``insert_many``: the persisted documents."""

    ops: list[dict[str, Any]] = Field(default_factory=list)
    inserted_ids: list[Any] = Field(default_factory=list)

    @property
    def inserted_id(self) -> Any:
        """The first inserted id, or ``None`` when nothing was inserted."""
        return self.inserted_ids[0] if self.inserted_ids else None


class UpdateResult(BaseModel):
    """Result of ``update_one``, ``update_many`` and ``replace_one``."""

    matched_count: int = 0
    modified_count: int = 0
    upserted_id: Any = None


class DeleteResult(BaseModel):
    """Result of ``delete_one`` and ``delete_many``."""

    deleted_count: int = 0


class LastErrorObject(BaseModel):
    """Write summary attached to find-one-and-* results.

    ``n`` is the number of matched (or upserted) documents and
    ``updated_existing`` tells an update of an existing document apart from
    an upsert insert.
    """

    n: int = 0
    updated_existing: bool = False
    upserted: Any = None


class FindAndModifyResult(BaseModel):
    """Result of ``find_one_and_update``, ``find_one_and_replace`` and ``find_one_and_delete``."""

    value: Optional[dict[str, Any]] = None
    last_error_object: Optional[LastErrorObject] = None
    ok: int = 1


# --- Normalized results ---


class UpdateSummary(BaseModel):
    """Normalized result of update and replace verbs."""

    model_config = ConfigDict(frozen=True)

    matched_count: int = 0
    modified_count: int = 0
    upserted_id: Any = None


class DeleteSummary(BaseModel):
    """Normalized result of delete verbs."""

    model_config = ConfigDict(frozen=True)

    deleted_count: int = 0
