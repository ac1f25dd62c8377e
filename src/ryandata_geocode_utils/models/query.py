"""Proximity query value object."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ryandata_geocode_utils.models.coordinate import Coordinate
from ryandata_geocode_utils.models.enums import DistanceUnit, SortDirection


class ProximityQuery(BaseModel):
    """Reference point, optional radius, unit and ordering for a near search.

    Unknown units fall back to kilometers instead of failing validation.
    """

    model_config = ConfigDict(frozen=True)

    reference: Coordinate
    max_distance: float | None = Field(default=None, gt=0)
    unit: DistanceUnit = DistanceUnit.KILOMETERS
    direction: SortDirection = SortDirection.ASC

    @field_validator("reference", mode="before")
    @classmethod
    def _coerce_reference(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            latitude, longitude = value
            return {"latitude": latitude, "longitude": longitude}
        return value

    @field_validator("unit", mode="before")
    @classmethod
    def _coerce_unit(cls, value: Any) -> DistanceUnit:
        from ryandata_geocode_utils.core.units import resolve_unit

        return resolve_unit(value)

    @field_validator("direction", mode="before")
    @classmethod
    def _coerce_direction(cls, value: Any) -> SortDirection:
        return SortDirection.parse(value)
