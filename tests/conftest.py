"""Shared pytest fixtures and Hypothesis configuration.

This module provides pytest fixtures and configures Hypothesis profiles
for the test suite.
"""

from __future__ import annotations

import pytest
from hypothesis import Verbosity, settings

from ryandata_geocode_utils.storage import InMemoryStorage, SQLiteStorage
from tests.fakes import STORE_COLUMNS, STORE_ROWS

# Configure Hypothesis settings for the test suite
settings.register_profile("ci", max_examples=200, deadline=None)
settings.register_profile("dev", max_examples=50, deadline=None)
settings.register_profile("debug", max_examples=10, deadline=None, verbosity=Verbosity.verbose)


@pytest.fixture
def memory_stores() -> InMemoryStorage:
    """In-memory storage holding STORE_ROWS."""
    return InMemoryStorage(columns=STORE_COLUMNS, rows=STORE_ROWS)


@pytest.fixture
def sqlite_stores():
    """SQLite storage holding STORE_ROWS."""
    storage = SQLiteStorage(":memory:", table="stores")
    storage.create_table([column for column in STORE_COLUMNS if column != "id"])
    for row in STORE_ROWS:
        storage.insert(row)
    yield storage
    storage.close()


@pytest.fixture(params=["memory", "sqlite"])
def stores(request: pytest.FixtureRequest):
    """Each storage adapter holding STORE_ROWS."""
    return request.getfixturevalue(f"{request.param}_stores")
