from __future__ import annotations

from typing import Any, ClassVar

from ryandata_geocode_utils.core.factory import PluginFactory
from ryandata_geocode_utils.protocols import GeocodeStorageProtocol


class StorageFactory(PluginFactory[GeocodeStorageProtocol]):
    """Factory for creating storage adapters by type name.

    Example:
        >>> storage = StorageFactory.create("memory")
        >>> storage = StorageFactory.create("sqlite", database="geo.db", table="stores")
    """

    _registry: ClassVar[dict[str, type[GeocodeStorageProtocol]]] = {}
    _default_type: ClassVar[str] = "memory"
    _entity_name: ClassVar[str] = "storage"

    @classmethod
    def _ensure_defaults_registered(cls) -> None:
        """Ensure built-in storages are registered."""
        if "memory" not in cls._registry:
            from ryandata_geocode_utils.storage.memory import InMemoryStorage

            cls._registry["memory"] = InMemoryStorage
        if "sqlite" not in cls._registry:
            from ryandata_geocode_utils.storage.sqlite_storage import SQLiteStorage

            cls._registry["sqlite"] = SQLiteStorage
        if "dataframe" not in cls._registry:
            from ryandata_geocode_utils.storage.dataframe import DataFrameStorage

            cls._registry["dataframe"] = DataFrameStorage

    @classmethod
    def create(  # type: ignore[override]
        cls,
        storage_type: str | None = None,
        **kwargs: Any,
    ) -> GeocodeStorageProtocol:
        """Create a storage instance.

        Args:
            storage_type: Type of storage. Defaults to "memory".
            **kwargs: Storage constructor arguments.

        Raises:
            ValueError: If the storage type is not registered.
        """
        return super().create(storage_type, **kwargs)
