"""Proximity query construction.

Builds the distance score, ordering and filter conditions for "records near
point P" as expression trees. The score is the chord length between the
reference point and each row on a unit sphere::

    SQRT(
        POW(COS(lat0) * COS(lon0) - COS(lat) * COS(lon), 2) +
        POW(COS(lat0) * SIN(lon0) - COS(lat) * SIN(lon), 2) +
        POW(SIN(lat0) - SIN(lat), 2)
    )

where every angle is wrapped in RADIANS(). Distance thresholds multiply the
score by the Earth radius in the requested unit, the same scaling used when
reporting distances.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ryandata_geocode_utils.core.expressions import (
    Comparison,
    Expression,
    OrderBy,
    add,
    compare,
    equals,
    func,
    literal,
    mul,
    round_half_away,
    sub,
)
from ryandata_geocode_utils.core.expressions import field as field_ref
from ryandata_geocode_utils.core.units import earth_radius, resolve_unit
from ryandata_geocode_utils.models.coordinate import Coordinate
from ryandata_geocode_utils.models.enums import DistanceUnit, SortDirection
from ryandata_geocode_utils.models.query import ProximityQuery

# Decimal places used to recognise the reference point itself
SELF_MATCH_PRECISION = 4

EXCLUDE_ORIGIN_LATITUDE = "exclude_origin_latitude"
EXCLUDE_ORIGIN_LONGITUDE = "exclude_origin_longitude"
WITHIN_DISTANCE = "within_distance"


@dataclass(frozen=True)
class DistanceQuery:
    """Filter and ordering specification for a proximity search.

    Conditions are keyed by name so callers can replace or extend them; all
    conditions must hold for a row to match.
    """

    reference: Coordinate
    score: Expression
    order: OrderBy | None
    conditions: dict[str, Expression] = field(default_factory=dict)
    unit: DistanceUnit = DistanceUnit.KILOMETERS
    max_distance: float | None = None

    def for_count(self) -> DistanceQuery:
        """Copy without ordering, for count queries."""
        return replace(self, order=None)

    def with_conditions(self, extra: Mapping[str, Any] | None) -> DistanceQuery:
        """Merge caller conditions, the caller winning on key overlap.

        Values that are not expressions become equality filters on the
        column named by their key.
        """
        if not extra:
            return self
        conditions = dict(self.conditions)
        for key, value in extra.items():
            if isinstance(value, Comparison):
                conditions[key] = value
            else:
                conditions[key] = equals(key, value)
        return replace(self, conditions=conditions)


class ProximityQueryBuilder:
    """Builds DistanceQuery objects for one pair of coordinate columns.

    Example:
        >>> builder = ProximityQueryBuilder("latitude", "longitude")
        >>> query = builder.build((25.7953, -80.2789), 1, "k")
        >>> sorted(query.conditions)
        ['exclude_origin_latitude', 'exclude_origin_longitude', 'within_distance']
    """

    def __init__(self, latitude_field: str = "latitude", longitude_field: str = "longitude") -> None:
        self.latitude_field = latitude_field
        self.longitude_field = longitude_field

    def score_expression(self, reference: Coordinate) -> Expression:
        """Chord length between the reference point and a row, on a unit sphere."""
        lat0 = func("RADIANS", literal(reference.latitude))
        lon0 = func("RADIANS", literal(reference.longitude))
        lat = func("RADIANS", field_ref(self.latitude_field))
        lon = func("RADIANS", field_ref(self.longitude_field))

        x = sub(
            mul(func("COS", lat0), func("COS", lon0)),
            mul(func("COS", lat), func("COS", lon)),
        )
        y = sub(
            mul(func("COS", lat0), func("SIN", lon0)),
            mul(func("COS", lat), func("SIN", lon)),
        )
        z = sub(func("SIN", lat0), func("SIN", lat))
        two = literal(2)
        return func(
            "SQRT",
            add(add(func("POW", x, two), func("POW", y, two)), func("POW", z, two)),
        )

    def self_exclusion(self, reference: Coordinate) -> dict[str, Expression]:
        """Conditions that keep the reference point out of its own results.

        Latitude and longitude are compared separately after rounding, so a row
        matching the reference on either axis at this precision is excluded.
        """
        precision = literal(SELF_MATCH_PRECISION)
        return {
            EXCLUDE_ORIGIN_LATITUDE: compare(
                func("ROUND", field_ref(self.latitude_field), precision),
                "!=",
                literal(round_half_away(reference.latitude, SELF_MATCH_PRECISION)),
            ),
            EXCLUDE_ORIGIN_LONGITUDE: compare(
                func("ROUND", field_ref(self.longitude_field), precision),
                "!=",
                literal(round_half_away(reference.longitude, SELF_MATCH_PRECISION)),
            ),
        }

    def build(
        self,
        reference_point: Coordinate | tuple[float, float] | list[float],
        max_distance: float | None = None,
        unit: Any = DistanceUnit.KILOMETERS,
        direction: SortDirection | str = SortDirection.ASC,
    ) -> DistanceQuery:
        """Build the query for a reference point.

        Args:
            reference_point: Coordinate or (latitude, longitude) pair.
            max_distance: Optional radius, in ``unit``. Must be positive.
            unit: Unit symbol; unknown units mean kilometers.
            direction: ASC (nearest first) or DESC.

        Returns:
            DistanceQuery with ordering and conditions.

        Raises:
            pydantic.ValidationError: If the point or radius is invalid.
        """
        query = ProximityQuery(
            reference=reference_point,
            max_distance=max_distance,
            unit=unit,
            direction=direction,
        )
        return self.build_query(query)

    def build_query(self, query: ProximityQuery) -> DistanceQuery:
        reference = query.reference
        score = self.score_expression(reference)
        conditions = self.self_exclusion(reference)

        if query.max_distance is not None:
            ratio = earth_radius(query.unit)
            conditions[WITHIN_DISTANCE] = compare(
                mul(score, literal(ratio)),
                "<=",
                literal(float(query.max_distance)),
            )

        return DistanceQuery(
            reference=reference,
            score=score,
            order=OrderBy(score, query.direction),
            conditions=conditions,
            unit=resolve_unit(query.unit),
            max_distance=query.max_distance,
        )
