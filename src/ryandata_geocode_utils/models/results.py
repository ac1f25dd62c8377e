"""Result classes for geocoding and proximity operations.

Every public operation returns one of these instead of raising, so callers
processing many records can decide per record whether to skip or abort.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from ryandata_geocode_utils.models.coordinate import Coordinate
from ryandata_geocode_utils.models.enums import DistanceUnit, GeocodeSource
from ryandata_geocode_utils.models.errors import RyanDataGeocodeError


@dataclass
class GeocodeResult:
    """Result of resolving an address to a coordinate."""

    raw_input: Any
    address: str | None = None
    coordinate: Coordinate | None = None
    error: RyanDataGeocodeError | None = None
    source: GeocodeSource | None = None
    # Address components reported by structured providers (city, zip, ...)
    components: dict[str, Any] = field(default_factory=dict)
    persisted: bool = False
    # Non-fatal problems, e.g. cross-entity fields that could not be filled
    notices: list[RyanDataGeocodeError] = field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        """Check if a coordinate was produced."""
        return self.error is None and self.coordinate is not None

    @property
    def latitude(self) -> float | None:
        return self.coordinate.latitude if self.coordinate else None

    @property
    def longitude(self) -> float | None:
        return self.coordinate.longitude if self.coordinate else None

    def raise_for_error(self) -> Coordinate:
        """Return the coordinate, raising the stored error if resolution failed.

        Raises:
            RyanDataGeocodeError: If the address could not be resolved.
        """
        if self.error is not None:
            raise self.error
        if self.coordinate is None:
            raise RyanDataGeocodeError.empty_address(self.raw_input)
        return self.coordinate

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "source": self.source.value if self.source else None,
            "persisted": self.persisted,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class DistanceResult:
    """Great-circle distance between two resolved points."""

    distance: float | None
    unit: DistanceUnit = DistanceUnit.KILOMETERS
    origin: Coordinate | None = None
    destination: Coordinate | None = None
    error: RyanDataGeocodeError | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.distance is not None

    def raise_for_error(self) -> float:
        if self.error is not None:
            raise self.error
        if self.distance is None:
            raise RyanDataGeocodeError.invalid_query("no distance was computed")
        return self.distance


@dataclass
class NearResult:
    """Rows returned by a near search, each annotated with ``distance``.

    Iterating a NearResult yields its rows. For ``find="count"`` searches
    ``rows`` is empty and ``count`` holds the number of matches.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    origin: Coordinate | None = None
    unit: DistanceUnit = DistanceUnit.KILOMETERS
    count: int | None = None
    error: RyanDataGeocodeError | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def raise_for_error(self) -> NearResult:
        if self.error is not None:
            raise self.error
        return self
