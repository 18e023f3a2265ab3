"""
Shared pytest fixtures and configuration for dataquery tests.

This module provides:
- An in-memory SQLite store (with and without the ``users`` table)
- A fake adapter for cursor/connection lifecycle assertions
- Settings and dialect-registry isolation

Usage:
    Fixtures are auto-discovered by pytest::

        def test_something(users_store):
            users_store.must_exec("insert into users (email) values (?)", "a@x.io")
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure the package and tests._support are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from dataquery import DataStore, SQLiteAdapter
from dataquery import dialect as dialect_module
from dataquery import settings as settings_module
from tests._support.fakes import FakeAdapter
from tests._support.records import USERS_DDL


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests that use a SQLite store as integration, the rest as unit."""
    for item in items:
        fixtures = set(getattr(item, "fixturenames", ()))
        if fixtures.intersection({"store", "users_store"}):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings so env changes in one test never leak."""
    settings_module._settings_cache.clear()
    yield
    settings_module._settings_cache.clear()


@pytest.fixture
def restore_dialect_registry() -> Generator[None, None, None]:
    """Restore the global dialect registry after tests that register dialects."""
    saved = dialect_module.default_dialects
    yield
    dialect_module.default_dialects = saved


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def sqlite_adapter() -> Generator[SQLiteAdapter, None, None]:
    adapter = SQLiteAdapter(path=":memory:")
    yield adapter
    adapter.disconnect()


@pytest.fixture
def store(sqlite_adapter: SQLiteAdapter) -> DataStore:
    """Empty in-memory SQLite store."""
    return DataStore(sqlite_adapter)


@pytest.fixture
def users_store(store: DataStore) -> DataStore:
    """In-memory SQLite store with an empty ``users`` table."""
    store.must_exec(USERS_DDL)
    return store


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    """Fake adapter returning five single-column rows."""
    return FakeAdapter(
        rows=[(1,), (2,), (3,), (4,), (5,)],
        description=[("id", None, None, None, None, None, None)],
    )
