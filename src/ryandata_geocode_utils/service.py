from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from ryandata_geocode_utils.config import GeocodeSettings
from ryandata_geocode_utils.core.address_composer import AddressComposer
from ryandata_geocode_utils.core.distance import DistanceCalculator
from ryandata_geocode_utils.core.query import DistanceQuery
from ryandata_geocode_utils.core.units import resolve_unit
from ryandata_geocode_utils.models import (
    Coordinate,
    DistanceResult,
    GeocodeResult,
    LogicalField,
    NearFind,
    NearResult,
    RyanDataGeocodeError,
    RyanDataValidationError,
    SortDirection,
)
from ryandata_geocode_utils.protocols import (
    GeocodeProviderProtocol,
    GeocodeStorageProtocol,
    RelatedRecordLookupProtocol,
)
from ryandata_geocode_utils.resolver import GeocodeResolver
from ryandata_geocode_utils.search import ProximitySearchService
from ryandata_geocode_utils.storage import StorageFactory

logger = logging.getLogger(__name__)


class GeocodeService:
    """High-level geocoding and proximity service.

    Ties together the resolver, the search service and a storage adapter
    behind one configuration snapshot.

    Example:
        >>> service = GeocodeService(GeocodeSettings(key="my-key"))
        >>> service.compose({"addr": "1209 La Brad Lane", "state": "FL"})
        '1209 La Brad Lane, FL'
        >>> math.ceil(service.distance((25.7953, -80.2789), (9.9981, -84.2036)).distance)
        1807

        # SQLite-backed cache and near searches
        >>> from ryandata_geocode_utils.storage import SQLiteStorage
        >>> service = GeocodeService(storage=SQLiteStorage("geo.db", table="stores"))
        >>> service.near((28.0792, -82.4735), 5, "m")
    """

    def __init__(
        self,
        settings: GeocodeSettings | None = None,
        *,
        storage: GeocodeStorageProtocol | None = None,
        provider: GeocodeProviderProtocol | None = None,
        related_lookup: RelatedRecordLookupProtocol | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the geocode service.

        Args:
            settings: Configuration snapshot. Defaults to environment settings.
            storage: Storage adapter. Defaults to an empty in-memory storage.
            provider: Provider implementation. Defaults to the configured service.
            related_lookup: Related-record lookup for cross-entity fields.
                Defaults to the storage when it can serve lookups.
            transport: httpx transport for the default provider.
        """
        self._storage = storage if storage is not None else StorageFactory.create()
        if related_lookup is None and isinstance(self._storage, RelatedRecordLookupProtocol):
            related_lookup = self._storage
        self._resolver = GeocodeResolver(
            settings,
            storage=self._storage,
            provider=provider,
            related_lookup=related_lookup,
            transport=transport,
        )
        self._search = ProximitySearchService(self._resolver)
        self._calculator = DistanceCalculator()

    @property
    def settings(self) -> GeocodeSettings:
        """Settings bound to the storage's columns."""
        return self._resolver.settings

    @property
    def storage(self) -> GeocodeStorageProtocol:
        return self._storage

    @property
    def resolver(self) -> GeocodeResolver:
        return self._resolver

    @property
    def search(self) -> ProximitySearchService:
        return self._search

    def compose(self, address: Mapping[str, Any] | str | None) -> str | None:
        """Canonical address string for structured data (related fields backfilled)."""
        if isinstance(address, Mapping):
            address, _ = self._resolver.backfill(AddressComposer.promote_street_line(address))
        return self._resolver.compose(address)

    def geocode(self, address: Mapping[str, Any] | str | None, persist: bool = True) -> GeocodeResult:
        """Resolve an address to a coordinate.

        Args:
            address: Structured address data or a full address string.
            persist: Store a remotely resolved coordinate for later lookups.

        Returns:
            GeocodeResult; check ``is_resolved`` or call ``raise_for_error()``.
        """
        return self._resolver.resolve(address, persist=persist)

    def geocode_batch(
        self,
        addresses: Sequence[Mapping[str, Any] | str],
        persist: bool = True,
    ) -> list[GeocodeResult]:
        """Resolve several addresses in order."""
        return [self.geocode(address, persist=persist) for address in addresses]

    def _point(self, value: Any) -> Coordinate:
        return self._search.resolve_origin(value, persist=True)

    def distance(self, origin: Any, destination: Any, unit: Any = "k") -> DistanceResult:
        """Great-circle distance between two points or addresses.

        Args:
            origin: (latitude, longitude), Coordinate, address mapping or string.
            destination: Same forms as ``origin``.
            unit: k, m, f, i or n. Unknown units mean kilometers.

        Returns:
            DistanceResult; ``error`` is set when an endpoint cannot be resolved.
        """
        distance_unit = resolve_unit(unit)
        try:
            start = self._point(origin)
            end = self._point(destination)
        except RyanDataGeocodeError as e:
            return DistanceResult(distance=None, unit=distance_unit, error=e)

        return DistanceResult(
            distance=self._calculator.distance(start, end, distance_unit),
            unit=distance_unit,
            origin=start,
            destination=end,
        )

    def distance_query(
        self,
        point: Any,
        distance: float | None = None,
        unit: Any = "k",
        direction: SortDirection | str = SortDirection.ASC,
    ) -> DistanceQuery:
        """Filter and ordering expressions for records near a point.

        Raises:
            RyanDataValidationError: If the point, radius or direction is invalid.
        """
        try:
            return self._search.distance_query(point, distance, unit, direction)
        except ValidationError as e:
            raise RyanDataValidationError(e, {"point": repr(point)}) from e

    def near(
        self,
        origin: Any,
        distance: float | None = None,
        unit: Any = "k",
        direction: SortDirection | str = SortDirection.ASC,
        extra_filters: Mapping[str, Any] | None = None,
        find: NearFind | str = NearFind.ALL,
    ) -> NearResult:
        """Stored records near an origin; see ProximitySearchService.near."""
        return self._search.near(origin, distance, unit, direction, extra_filters, find)

    def prepare_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Fill coordinates on a record that is about to be saved.

        Records that already carry a latitude or longitude are returned
        unchanged. Otherwise the address is resolved without persisting, and
        the coordinate, canonical address and provider-standardised components
        are written to their columns.

        Returns:
            Updated copy of the record.
        """
        spec = self.settings.field_spec
        latitude_column = spec.column(LogicalField.LATITUDE)
        longitude_column = spec.column(LogicalField.LONGITUDE)
        data = dict(record)
        if not (latitude_column and longitude_column):
            return data
        if data.get(latitude_column) is not None or data.get(longitude_column) is not None:
            return data

        data = AddressComposer.promote_street_line(data)
        result = self._resolver.resolve(data, persist=False)
        if result.error is not None or result.coordinate is None:
            logger.warning("Could not geocode record before save: %s", str(result.error))
            return data

        update: dict[str, Any] = {
            latitude_column: result.coordinate.latitude,
            longitude_column: result.coordinate.longitude,
        }
        address_column = spec.column(LogicalField.ADDRESS)
        if address_column:
            update[address_column] = result.address
        data.update(self._resolver.standardize(update, result.components))
        return data


# Module-level convenience function
_default_service: GeocodeService | None = None


def get_default_service() -> GeocodeService:
    """Get the default GeocodeService singleton.

    Returns:
        Shared GeocodeService with environment settings and in-memory storage.
    """
    global _default_service
    if _default_service is None:
        _default_service = GeocodeService()
    return _default_service


def geocode(address: Mapping[str, Any] | str, persist: bool = True) -> GeocodeResult:
    """Geocode an address using the default service."""
    return get_default_service().geocode(address, persist=persist)


def distance(origin: Any, destination: Any, unit: Any = "k") -> DistanceResult:
    """Distance between two points or addresses using the default service."""
    return get_default_service().distance(origin, destination, unit)


def near(
    origin: Any,
    distance: float | None = None,
    unit: Any = "k",
    **kwargs: Any,
) -> NearResult:
    """Near search against the default service's storage."""
    return get_default_service().near(origin, distance, unit, **kwargs)
