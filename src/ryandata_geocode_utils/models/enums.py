"""Logical field, unit and ordering enumerations."""

from __future__ import annotations

from enum import Enum


class LogicalField(str, Enum):
    """Enumeration of the logical fields a geocodable record may carry."""

    ADDRESS1 = "address1"
    ADDRESS2 = "address2"
    CITY = "city"
    STATE = "state"
    ZIP = "zip"
    COUNTRY = "country"
    ADDRESS = "address"
    HASH = "hash"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"


# Components that appear as ${placeholders} in an address format
ADDRESS_COMPONENTS: tuple[LogicalField, ...] = (
    LogicalField.ADDRESS1,
    LogicalField.ADDRESS2,
    LogicalField.CITY,
    LogicalField.STATE,
    LogicalField.ZIP,
    LogicalField.COUNTRY,
)

# Fields written back by the resolver alongside the address components
RECORD_FIELDS: tuple[LogicalField, ...] = (
    LogicalField.ADDRESS,
    LogicalField.HASH,
    LogicalField.LATITUDE,
    LogicalField.LONGITUDE,
)


class DistanceUnit(str, Enum):
    """Distance unit symbols.

    k: kilometers, m: miles, f: feet, i: inches, n: nautical miles
    """

    KILOMETERS = "k"
    MILES = "m"
    FEET = "f"
    INCHES = "i"
    NAUTICAL_MILES = "n"


class SortDirection(str, Enum):
    """Ordering direction for proximity queries."""

    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: str | SortDirection | None) -> SortDirection:
        """Parse a direction case-insensitively, defaulting to ascending."""
        if isinstance(value, SortDirection):
            return value
        if not value:
            return cls.ASC
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Invalid sort direction: {value!r}. Use ASC or DESC.") from None


class NearFind(str, Enum):
    """Result shape of a near search."""

    ALL = "all"
    FIRST = "first"
    COUNT = "count"


class GeocodeSource(str, Enum):
    """Where a resolved coordinate came from."""

    INPUT = "input"
    CACHE = "cache"
    PROVIDER = "provider"
