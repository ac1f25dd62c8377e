"""Great-circle distance using the haversine formula."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from ryandata_geocode_utils.core.units import EARTH_RADIUS_KM, unit_ratio
from ryandata_geocode_utils.models.coordinate import Coordinate

Point = Coordinate | Sequence[float]


def _as_pair(point: Point) -> tuple[float, float]:
    if isinstance(point, Coordinate):
        return point.as_tuple()
    latitude, longitude = point
    return float(latitude), float(longitude)


def central_angle(point_a: Point, point_b: Point) -> float:
    """Central angle in radians between two points on a sphere."""
    lat1, lon1 = _as_pair(point_a)
    lat2, lon2 = _as_pair(point_b)

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    cos_product = math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
    a = math.sin(d_lat / 2) ** 2 + math.sin(d_lon / 2) ** 2 * cos_product
    # Rounding can push a marginally outside [0, 1] for near-antipodal points
    a = min(max(a, 0.0), 1.0)
    return 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_distance(point_a: Point, point_b: Point, unit: Any = "k") -> float:
    """Distance between two (latitude, longitude) points.

    Args:
        point_a: First point, in decimal degrees.
        point_b: Second point, in decimal degrees.
        unit: Unit symbol (k, m, f, i, n). Unknown units mean kilometers.

    Returns:
        Distance in the requested unit.
    """
    distance_km = EARTH_RADIUS_KM * central_angle(point_a, point_b)
    return distance_km * unit_ratio(unit)


class DistanceCalculator:
    """Computes distances between numeric coordinate pairs.

    Never performs I/O: addresses must be resolved to coordinates first,
    see ``GeocodeService.distance`` for the resolving variant.
    """

    def __init__(self, default_unit: Any = "k") -> None:
        self._default_unit = default_unit

    def distance(self, point_a: Point, point_b: Point, unit: Any = None) -> float:
        return haversine_distance(point_a, point_b, self._default_unit if unit is None else unit)

    def row_distance(
        self,
        row: dict[str, Any],
        reference: Point,
        latitude_field: str,
        longitude_field: str,
        unit: Any = None,
    ) -> float | None:
        """Distance from a stored row's coordinate to a reference point.

        Returns:
            Distance, or None when the row lacks either coordinate.
        """
        try:
            coordinate = Coordinate.from_values(row.get(latitude_field), row.get(longitude_field))
        except ValueError:
            return None
        if coordinate is None:
            return None
        return self.distance(coordinate, reference, unit)
