"""Storage adapters for geocoded records.

``DataFrameStorage`` needs pandas and is imported from
``ryandata_geocode_utils.storage.dataframe`` (or created through
``StorageFactory.create("dataframe")``).
"""

from __future__ import annotations

from ryandata_geocode_utils.storage.base import DEFAULT_COLUMNS, BaseRowStorage
from ryandata_geocode_utils.storage.factory import StorageFactory
from ryandata_geocode_utils.storage.memory import InMemoryStorage
from ryandata_geocode_utils.storage.related import MappingRelatedLookup
from ryandata_geocode_utils.storage.sqlite_storage import SQLiteStorage, register_functions

__all__ = [
    "DEFAULT_COLUMNS",
    "BaseRowStorage",
    "InMemoryStorage",
    "SQLiteStorage",
    "MappingRelatedLookup",
    "StorageFactory",
    "register_functions",
]
