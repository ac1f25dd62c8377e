"""Coordinate model."""

from __future__ import annotations

import math
from collections.abc import Sequence
from numbers import Real
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, Real):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def is_coordinate_pair(value: Any) -> bool:
    """Check whether a value is a (latitude, longitude) pair of numbers.

    Numeric strings are accepted, booleans are not.

    Args:
        value: Candidate origin or destination.

    Returns:
        True for a Coordinate or a 2-element numeric sequence.
    """
    if isinstance(value, Coordinate):
        return True
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return False
    return len(value) == 2 and all(_is_number(v) for v in value)


class Coordinate(BaseModel):
    """A latitude/longitude pair in decimal degrees.

    Immutable once built. Both components are always present; a record with a
    single component is treated as having no coordinate at all.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0, description="Latitude in degrees")
    longitude: float = Field(ge=-180.0, le=180.0, description="Longitude in degrees")

    @classmethod
    def from_pair(cls, pair: Sequence[Any] | Coordinate) -> Coordinate:
        """Build a Coordinate from a (latitude, longitude) sequence.

        Raises:
            pydantic.ValidationError: If a component is out of range or not numeric.
        """
        if isinstance(pair, Coordinate):
            return pair
        latitude, longitude = pair
        return cls(latitude=float(latitude), longitude=float(longitude))

    @classmethod
    def from_values(cls, latitude: Any, longitude: Any) -> Coordinate | None:
        """Build a Coordinate from two possibly-missing values.

        Returns:
            Coordinate, or None if either value is missing or NaN.
        """
        if latitude is None or longitude is None or latitude == "" or longitude == "":
            return None
        latitude, longitude = float(latitude), float(longitude)
        if math.isnan(latitude) or math.isnan(longitude):
            return None
        return cls(latitude=latitude, longitude=longitude)

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)
