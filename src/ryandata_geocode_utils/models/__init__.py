"""Geocode models package.

Coordinates, field configuration, query value objects, results and errors.
"""

from __future__ import annotations

from ryandata_geocode_utils.models.coordinate import Coordinate, is_coordinate_pair
from ryandata_geocode_utils.models.enums import (
    ADDRESS_COMPONENTS,
    RECORD_FIELDS,
    DistanceUnit,
    GeocodeSource,
    LogicalField,
    NearFind,
    SortDirection,
)
from ryandata_geocode_utils.models.errors import (
    PACKAGE_NAME,
    GeocodeErrorType,
    RyanDataGeocodeError,
    RyanDataValidationError,
)
from ryandata_geocode_utils.models.fields import (
    DEFAULT_ADDRESS_TEMPLATE,
    AddressFieldSpec,
    AddressFormat,
    CrossEntityFieldRule,
    FieldBinding,
    rules_from_config,
)
from ryandata_geocode_utils.models.query import ProximityQuery
from ryandata_geocode_utils.models.results import DistanceResult, GeocodeResult, NearResult

__all__ = [
    # Errors
    "PACKAGE_NAME",
    "GeocodeErrorType",
    "RyanDataGeocodeError",
    "RyanDataValidationError",
    # Enums and constants
    "LogicalField",
    "ADDRESS_COMPONENTS",
    "RECORD_FIELDS",
    "DistanceUnit",
    "SortDirection",
    "NearFind",
    "GeocodeSource",
    # Coordinates
    "Coordinate",
    "is_coordinate_pair",
    # Field configuration
    "DEFAULT_ADDRESS_TEMPLATE",
    "AddressFieldSpec",
    "AddressFormat",
    "CrossEntityFieldRule",
    "FieldBinding",
    "rules_from_config",
    # Queries and results
    "ProximityQuery",
    "GeocodeResult",
    "DistanceResult",
    "NearResult",
]
