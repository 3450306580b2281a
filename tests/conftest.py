"""Shared test fixtures for storehooks.

Provides reusable fixtures for building collections over the bundled
stores, isolating configuration, managing output state, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from storehooks.collection import Collection
from storehooks.models import (
    DeleteResult,
    FindAndModifyResult,
    InsertResult,
    LastErrorObject,
    UpdateResult,
)
from storehooks.output import OutputFormat, OutputManager, reset_output, set_output
from storehooks.plugins import PluginRegistry, reset_default_registry
from storehooks.store import MemoryStore


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and plugin registry after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()
    reset_default_registry()


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> MemoryStore:
    """An empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def mock_store() -> MagicMock:
    """A store double whose verbs return successful native results.

    Every verb returns a plausible result so tests only override the
    ones they care about (``mock_store.update_one.return_value = ...``).
    """
    store = MagicMock(name="store")
    store.insert_one.side_effect = lambda doc, options: InsertResult(
        ops=[{**doc, "_id": 1}], inserted_ids=[1]
    )
    store.insert_many.side_effect = lambda docs, options: InsertResult(
        ops=[{**d, "_id": i} for i, d in enumerate(docs, 1)],
        inserted_ids=list(range(1, len(docs) + 1)),
    )
    store.update_one.return_value = UpdateResult(matched_count=1, modified_count=1)
    store.update_many.return_value = UpdateResult(matched_count=2, modified_count=2)
    store.replace_one.return_value = UpdateResult(matched_count=1, modified_count=1)
    store.delete_one.return_value = DeleteResult(deleted_count=1)
    store.delete_many.return_value = DeleteResult(deleted_count=3)
    store.find_one_and_update.return_value = FindAndModifyResult(
        value={"_id": 1, "a": 1}, last_error_object=LastErrorObject(n=1, updated_existing=True)
    )
    store.find_one_and_replace.return_value = FindAndModifyResult(
        value={"_id": 1, "b": 2}, last_error_object=LastErrorObject(n=1, updated_existing=True)
    )
    store.find_one_and_delete.return_value = FindAndModifyResult(
        value={"_id": 1}, last_error_object=LastErrorObject(n=1)
    )
    return store


# ---------------------------------------------------------------------------
# Collection fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def plugin_registry() -> PluginRegistry:
    """A registry holding only the built-in plugins (no entry-point discovery)."""
    return PluginRegistry()


@pytest.fixture
def users(memory_store: MemoryStore, plugin_registry: PluginRegistry) -> Collection:
    """A ``app.users`` collection over an empty memory store."""
    return Collection(memory_store, "users", database="app", plugin_registry=plugin_registry)


@pytest.fixture
def mocked(mock_store: MagicMock, plugin_registry: PluginRegistry) -> Collection:
    """A ``app.items`` collection over :func:`mock_store`."""
    return Collection(mock_store, "items", database="app", plugin_registry=plugin_registry)


@pytest.fixture
def recorder() -> Any:
    """Factory for listeners that append ``(label, params)`` to a shared list."""
    calls: list[tuple[str, dict[str, Any]]] = []

    def make(label: str):
        def listener(params: dict[str, Any]) -> None:
            calls.append((label, params))

        return listener

    make.calls = calls  # type: ignore[attr-defined]
    return make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME to a subdirectory of tmp_path, forces the XDG
    layout, clears all STOREHOOKS_* environment variables and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("storehooks.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in ["STOREHOOKS_BASE_URL", "STOREHOOKS_DATABASE"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
