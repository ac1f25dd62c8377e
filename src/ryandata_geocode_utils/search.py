"""Near searches over stored records."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ryandata_geocode_utils.core.distance import DistanceCalculator
from ryandata_geocode_utils.core.query import DistanceQuery, ProximityQueryBuilder
from ryandata_geocode_utils.core.units import resolve_unit
from ryandata_geocode_utils.models import (
    Coordinate,
    LogicalField,
    NearFind,
    NearResult,
    RyanDataGeocodeError,
    SortDirection,
    is_coordinate_pair,
)
from ryandata_geocode_utils.protocols import GeocodeStorageProtocol
from ryandata_geocode_utils.resolver import GeocodeResolver

logger = logging.getLogger(__name__)

DISTANCE_KEY = "distance"


class ProximitySearchService:
    """Finds stored records near an origin.

    The storage filters and orders rows by the chord-length score; each
    returned row is then annotated with its exact haversine ``distance``.
    """

    def __init__(
        self,
        resolver: GeocodeResolver,
        storage: GeocodeStorageProtocol | None = None,
        calculator: DistanceCalculator | None = None,
    ) -> None:
        self.resolver = resolver
        self.storage = storage if storage is not None else resolver.storage
        self.calculator = calculator or DistanceCalculator()

        spec = resolver.settings.field_spec
        if storage is not None and storage is not resolver.storage:
            spec = spec.bind_columns(storage.columns())
        self.latitude_field = spec.column(LogicalField.LATITUDE)
        self.longitude_field = spec.column(LogicalField.LONGITUDE)
        self.builder = ProximityQueryBuilder(
            self.latitude_field or LogicalField.LATITUDE.value,
            self.longitude_field or LogicalField.LONGITUDE.value,
        )

    def resolve_origin(self, origin: Any, persist: bool = False) -> Coordinate:
        """Turn an origin into a coordinate.

        Numeric pairs and Coordinates are used directly; anything else is
        resolved through the resolver, without persisting by default.

        Raises:
            RyanDataGeocodeError: ``invalid_query_origin`` if that fails.
        """
        if is_coordinate_pair(origin):
            try:
                return Coordinate.from_pair(origin)
            except ValidationError as e:
                raise RyanDataGeocodeError.invalid_query_origin(origin, e) from e

        result = self.resolver.resolve(origin, persist=persist)
        if result.error is not None or result.coordinate is None:
            raise RyanDataGeocodeError.invalid_query_origin(origin, result.error)
        return result.coordinate

    def distance_query(
        self,
        point: Any,
        distance: float | None = None,
        unit: Any = "k",
        direction: SortDirection | str = SortDirection.ASC,
    ) -> DistanceQuery:
        """Build the proximity query for a reference point.

        Raises:
            pydantic.ValidationError: If the point, radius or direction is invalid.
        """
        return self.builder.build(point, distance, unit, direction)

    def near(
        self,
        origin: Any,
        distance: float | None = None,
        unit: Any = "k",
        direction: SortDirection | str = SortDirection.ASC,
        extra_filters: Mapping[str, Any] | None = None,
        find: NearFind | str = NearFind.ALL,
    ) -> NearResult:
        """Find stored records near an origin.

        Args:
            origin: (latitude, longitude) pair, Coordinate, address mapping or
                address string.
            distance: Optional radius in ``unit``.
            unit: k, m, f, i or n. Unknown units mean kilometers.
            direction: ASC (nearest first) or DESC.
            extra_filters: Optional ``conditions`` (name -> expression or
                column -> value), ``limit`` and ``fields``.
            find: "all", "first" or "count".

        Returns:
            NearResult with annotated rows, or ``count`` for count searches.
        """
        distance_unit = resolve_unit(unit)
        extra = dict(extra_filters or {})

        try:
            mode = NearFind(find.lower() if isinstance(find, str) else find)
        except ValueError:
            return NearResult(
                unit=distance_unit,
                error=RyanDataGeocodeError.invalid_query(f"unknown find type {find!r}"),
            )

        if self.storage is None or not (self.latitude_field and self.longitude_field):
            return NearResult(
                unit=distance_unit,
                error=RyanDataGeocodeError.invalid_query("storage has no latitude/longitude columns"),
            )

        try:
            reference = self.resolve_origin(origin)
        except RyanDataGeocodeError as e:
            logger.warning("Invalid near origin: %s", str(e))
            return NearResult(unit=distance_unit, error=e)

        try:
            query = self.distance_query(reference, distance, distance_unit, direction)
            query = query.with_conditions(extra.get("conditions"))
        except (ValidationError, ValueError) as e:
            return NearResult(
                origin=reference, unit=distance_unit, error=RyanDataGeocodeError.invalid_query(str(e))
            )

        try:
            if mode is NearFind.COUNT:
                count_query = query.for_count()
                total = self.storage.count(count_query.conditions)
                return NearResult(origin=reference, unit=distance_unit, count=total)

            limit = 1 if mode is NearFind.FIRST else extra.get("limit")
            rows = self.storage.query(
                query.conditions,
                order=query.order,
                limit=limit,
                fields=self._projection(extra.get("fields")),
            )
        except Exception as e:
            logger.warning("Near search failed: %s", str(e))
            return NearResult(
                origin=reference,
                unit=distance_unit,
                error=RyanDataGeocodeError.storage_error("query", str(e)),
            )

        for row in rows:
            row[DISTANCE_KEY] = self.calculator.row_distance(
                row, reference, self.latitude_field, self.longitude_field, distance_unit
            )
        return NearResult(rows=rows, origin=reference, unit=distance_unit, count=len(rows))

    def _projection(self, fields: Any) -> list[str] | None:
        if not fields:
            return None
        names = [fields] if isinstance(fields, str) else list(fields)
        for column in (self.latitude_field, self.longitude_field):
            if column and column not in names:
                names.append(column)
        return names
