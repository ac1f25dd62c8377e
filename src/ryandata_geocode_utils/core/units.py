"""Distance unit conversion table.

All ratios are relative to one kilometer. Distances are computed on a sphere
with a fixed radius of 6378 km rather than the WGS-84 ellipsoid.
"""

from __future__ import annotations

import logging
from typing import Any

from ryandata_geocode_utils.models.enums import DistanceUnit
from ryandata_geocode_utils.models.errors import RyanDataGeocodeError

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6378.0

UNIT_RATIOS: dict[DistanceUnit, float] = {
    DistanceUnit.KILOMETERS: 1.0,
    DistanceUnit.MILES: 0.621371192,
    DistanceUnit.FEET: 3280.8399,
    DistanceUnit.INCHES: 39370.0787,
    DistanceUnit.NAUTICAL_MILES: 0.539956803,
}


def resolve_unit(unit: Any) -> DistanceUnit:
    """Resolve a unit symbol, falling back to kilometers.

    Args:
        unit: A DistanceUnit or one of ``k``, ``m``, ``f``, ``i``, ``n``
            (case-insensitive). Anything else means kilometers.

    Returns:
        The matching DistanceUnit.
    """
    if isinstance(unit, DistanceUnit):
        return unit
    if isinstance(unit, str) and unit.strip():
        try:
            return DistanceUnit(unit.strip().lower())
        except ValueError:
            pass
    if unit is not None and unit != "":
        logger.debug("%s", RyanDataGeocodeError.unsupported_unit(unit))
    return DistanceUnit.KILOMETERS


def unit_ratio(unit: Any) -> float:
    """Conversion ratio from kilometers to the given unit."""
    return UNIT_RATIOS[resolve_unit(unit)]


def earth_radius(unit: Any = DistanceUnit.KILOMETERS) -> float:
    """Earth radius expressed in the given unit."""
    return EARTH_RADIUS_KM * unit_ratio(unit)


def is_supported_unit(unit: Any) -> bool:
    if isinstance(unit, DistanceUnit):
        return True
    return isinstance(unit, str) and unit.strip().lower() in {u.value for u in DistanceUnit}
