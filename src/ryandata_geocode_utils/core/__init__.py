"""RyanData Geocode Utils Core - storage-independent geodesy and query building.

Usage:
    from ryandata_geocode_utils.core import (
        # Units and distance
        resolve_unit,
        haversine_distance,
        DistanceCalculator,
        # Address composition
        AddressComposer,
        compose_address,
        # Query expressions
        ProximityQueryBuilder,
        DistanceQuery,
        evaluate,
        SQLRenderer,
        # Factory
        PluginFactory,
    )
"""

from __future__ import annotations

from ryandata_geocode_utils.core.address_composer import (
    AddressComposer,
    compose_address,
    get_composer,
)
from ryandata_geocode_utils.core.distance import (
    DistanceCalculator,
    central_angle,
    haversine_distance,
)
from ryandata_geocode_utils.core.expressions import (
    BinaryOp,
    Comparison,
    Expression,
    Field,
    Func,
    Literal,
    OrderBy,
    SQLRenderer,
    evaluate,
    matches,
    round_half_away,
)
from ryandata_geocode_utils.core.factory import PluginFactory
from ryandata_geocode_utils.core.query import (
    EXCLUDE_ORIGIN_LATITUDE,
    EXCLUDE_ORIGIN_LONGITUDE,
    SELF_MATCH_PRECISION,
    WITHIN_DISTANCE,
    DistanceQuery,
    ProximityQueryBuilder,
)
from ryandata_geocode_utils.core.units import (
    EARTH_RADIUS_KM,
    UNIT_RATIOS,
    earth_radius,
    is_supported_unit,
    resolve_unit,
    unit_ratio,
)

__all__ = [
    # Units
    "EARTH_RADIUS_KM",
    "UNIT_RATIOS",
    "resolve_unit",
    "unit_ratio",
    "earth_radius",
    "is_supported_unit",
    # Distance
    "central_angle",
    "haversine_distance",
    "DistanceCalculator",
    # Address composition
    "AddressComposer",
    "compose_address",
    "get_composer",
    # Expressions
    "Expression",
    "Field",
    "Literal",
    "Func",
    "BinaryOp",
    "Comparison",
    "OrderBy",
    "evaluate",
    "matches",
    "round_half_away",
    "SQLRenderer",
    # Proximity queries
    "ProximityQueryBuilder",
    "DistanceQuery",
    "SELF_MATCH_PRECISION",
    "EXCLUDE_ORIGIN_LATITUDE",
    "EXCLUDE_ORIGIN_LONGITUDE",
    "WITHIN_DISTANCE",
    # Factory
    "PluginFactory",
]
