"""ryandata-geocode-utils: geocoding and proximity search for address records.

This package provides:
- Canonical address composition from aliased, partial address data
- Cache-first geocoding against stored records with pluggable providers
- Haversine distances in kilometers, miles, feet, inches or nautical miles
- Storage-agnostic "near point P" queries (in-memory, SQLite, pandas)
- Pandas integration and a command line

Quick Start:
    >>> from ryandata_geocode_utils import GeocodeService, GeocodeSettings
    >>> service = GeocodeService(GeocodeSettings(key="my-api-key"))
    >>> result = service.geocode({"address1": "1209 La Brad Lane", "city": "Tampa", "state": "FL"})
    >>> if result.is_resolved:
    ...     print(result.latitude, result.longitude)
    ... else:
    ...     print(result.error)

    # Distances never need a provider for numeric points
    >>> service.distance((25.7953, -80.2789), (9.9981, -84.2036), "m").distance

    # Near searches over stored records
    >>> from ryandata_geocode_utils.storage import SQLiteStorage
    >>> service = GeocodeService(storage=SQLiteStorage("stores.db", table="stores"))
    >>> for row in service.near((28.0792, -82.4735), 10, "k"):
    ...     print(row["address"], row["distance"])
"""

from __future__ import annotations  # noqa: I001

# Import order is intentional to avoid circular imports - do not auto-fix
from ryandata_geocode_utils.models import (
    PACKAGE_NAME,
    AddressFieldSpec,
    AddressFormat,
    Coordinate,
    CrossEntityFieldRule,
    DistanceResult,
    DistanceUnit,
    GeocodeErrorType,
    GeocodeResult,
    GeocodeSource,
    LogicalField,
    NearFind,
    NearResult,
    ProximityQuery,
    RyanDataGeocodeError,
    RyanDataValidationError,
    SortDirection,
)
from ryandata_geocode_utils.core import (
    AddressComposer,
    DistanceCalculator,
    DistanceQuery,
    PluginFactory,
    ProximityQueryBuilder,
    compose_address,
    haversine_distance,
)
from ryandata_geocode_utils.protocols import (
    GeocodeProviderProtocol,
    GeocodeStorageProtocol,
    RelatedRecordLookupProtocol,
)
from ryandata_geocode_utils.providers import (
    BaseGeocodeProvider,
    ProviderFactory,
)
from ryandata_geocode_utils.storage import (
    InMemoryStorage,
    MappingRelatedLookup,
    SQLiteStorage,
    StorageFactory,
)
from ryandata_geocode_utils.config import GeocodeSettings
from ryandata_geocode_utils.resolver import GeocodeResolver
from ryandata_geocode_utils.search import ProximitySearchService
from ryandata_geocode_utils.service import (
    GeocodeService,
    distance,
    geocode,
    get_default_service,
    near,
)
from ryandata_geocode_utils.pandas_ext import add_distance_column, register_accessor

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Main service
    "GeocodeService",
    "GeocodeSettings",
    "get_default_service",
    # Convenience functions
    "geocode",
    "distance",
    "near",
    "compose_address",
    "haversine_distance",
    # Components
    "GeocodeResolver",
    "ProximitySearchService",
    "ProximityQueryBuilder",
    "DistanceQuery",
    "DistanceCalculator",
    "AddressComposer",
    # Models
    "Coordinate",
    "AddressFieldSpec",
    "AddressFormat",
    "CrossEntityFieldRule",
    "ProximityQuery",
    "GeocodeResult",
    "DistanceResult",
    "NearResult",
    "LogicalField",
    "DistanceUnit",
    "SortDirection",
    "NearFind",
    "GeocodeSource",
    # Errors
    "PACKAGE_NAME",
    "GeocodeErrorType",
    "RyanDataGeocodeError",
    "RyanDataValidationError",
    # Protocols
    "GeocodeProviderProtocol",
    "GeocodeStorageProtocol",
    "RelatedRecordLookupProtocol",
    # Providers
    "BaseGeocodeProvider",
    "ProviderFactory",
    # Storage
    "InMemoryStorage",
    "SQLiteStorage",
    "MappingRelatedLookup",
    "StorageFactory",
    # Factory
    "PluginFactory",
    # Pandas
    "register_accessor",
    "add_distance_column",
]
