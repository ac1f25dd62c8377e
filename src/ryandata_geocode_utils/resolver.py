"""Address to coordinate resolution.

Resolution is cache-first: previously geocoded records in storage are
consulted before the remote provider, and successful remote resolutions can be
written back so the next lookup for the same address is served locally.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ryandata_geocode_utils.config import GeocodeSettings, settings_for_storage
from ryandata_geocode_utils.core.address_composer import AddressComposer
from ryandata_geocode_utils.models import (
    ADDRESS_COMPONENTS,
    Coordinate,
    CrossEntityFieldRule,
    GeocodeResult,
    GeocodeSource,
    LogicalField,
    RyanDataGeocodeError,
)
from ryandata_geocode_utils.protocols import (
    GeocodeProviderProtocol,
    GeocodeStorageProtocol,
    RelatedRecordLookupProtocol,
)

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class GeocodeResolver:
    """Resolves addresses to coordinates, cache first.

    Example:
        >>> resolver = GeocodeResolver(GeocodeSettings(key="my-key"), storage=InMemoryStorage())
        >>> result = resolver.resolve({"address1": "1209 La Brad Lane", "city": "Tampa", "state": "FL"})
        >>> result.address
        '1209 La Brad Lane, Tampa, FL'
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
        """Initialize the resolver.

        Args:
            settings: Configuration snapshot. Defaults to environment settings.
            storage: Storage used as cache and persistence target.
            provider: Explicit provider. When given it is used even without a
                configured API key.
            related_lookup: Capability used to backfill cross-entity fields.
            transport: httpx transport for the lazily created provider.
        """
        settings = settings or GeocodeSettings()
        self.settings = settings_for_storage(settings, storage) if storage is not None else settings
        self.storage = storage
        self.related_lookup = related_lookup
        self._provider = provider
        self._transport = transport

    @property
    def provider(self) -> GeocodeProviderProtocol | None:
        """The remote provider, or None when no credential is configured."""
        if self._provider is None and self.settings.has_credentials:
            self._provider = self.settings.create_provider(self._transport)
        return self._provider

    # ------------------------------------------------------------------
    # Address preparation
    # ------------------------------------------------------------------

    def backfill(
        self, data: Mapping[str, Any]
    ) -> tuple[dict[str, Any], list[RyanDataGeocodeError]]:
        """Fill empty address components from related records.

        Args:
            data: Structured address data.

        Returns:
            (filled copy of the data, notices for fields that stayed empty)
        """
        filled = dict(data)
        notices: list[RyanDataGeocodeError] = []
        for rule in self.settings.rules:
            if not _is_empty(filled.get(rule.field.value)):
                continue
            try:
                value = self._lookup_rule(rule, filled)
            except RyanDataGeocodeError as notice:
                notices.append(notice)
                continue
            except Exception as e:
                notices.append(
                    RyanDataGeocodeError.unresolved_field(rule.field.value, rule.entity, str(e))
                )
                continue
            filled[rule.field.value] = value

        for notice in notices:
            logger.warning("Unresolved cross-entity field: %s", str(notice))
        return filled, notices

    def _lookup_rule(self, rule: CrossEntityFieldRule, data: Mapping[str, Any]) -> Any:
        def unresolved(reason: str) -> RyanDataGeocodeError:
            return RyanDataGeocodeError.unresolved_field(rule.field.value, rule.entity, reason)

        if self.related_lookup is None:
            raise unresolved("no related-record lookup configured")

        record_id = data.get(rule.local_reference)
        if _is_empty(record_id):
            raise unresolved(f"{rule.local_reference} is empty")

        entity = rule.path[0]
        if rule.hop_reference is not None:
            record_id = self.related_lookup.lookup(entity, record_id, rule.hop_reference)
            if _is_empty(record_id):
                raise unresolved(f"{entity} has no {rule.hop_reference}")
            entity = rule.path[1]

        value = self.related_lookup.lookup(entity, record_id, rule.lookup_field)
        if _is_empty(value):
            raise unresolved(f"{entity} {record_id!r} not found or has no {rule.lookup_field}")
        return value

    def compose(self, address: Mapping[str, Any] | str | None) -> str | None:
        if address is not None and not isinstance(address, (str, Mapping)):
            return None
        composed = AddressComposer.compose(self.settings.field_spec, self.settings.format, address)
        if composed is None or not composed.strip():
            return None
        return composed.strip()

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def cache_filters(self, address: str) -> dict[str, Any] | None:
        """Filters that find a stored record for an address.

        Returns:
            Column filters, or None when the schema cannot serve as a cache.
        """
        spec = self.settings.field_spec
        if self.storage is None:
            return None
        if not (spec.has_column(LogicalField.LATITUDE) and spec.has_column(LogicalField.LONGITUDE)):
            return None
        hash_column = spec.column(LogicalField.HASH)
        if hash_column:
            return {hash_column: self.settings.hash_address(address)}
        address_column = spec.column(LogicalField.ADDRESS)
        if address_column:
            return {address_column: address}
        return None

    def lookup_cached(self, address: str) -> Coordinate | None:
        """Coordinate of a stored record for this address, if any.

        Raises:
            RyanDataGeocodeError: If the storage lookup fails.
        """
        filters = self.cache_filters(address)
        if filters is None or self.storage is None:
            return None
        spec = self.settings.field_spec
        coordinate_columns = (
            spec.column(LogicalField.LATITUDE) or "",
            spec.column(LogicalField.LONGITUDE) or "",
        )
        try:
            row = self.storage.find_one(filters, not_null=coordinate_columns)
        except Exception as e:
            raise RyanDataGeocodeError.storage_error("find", str(e)) from e
        if row is None:
            return None

        try:
            return Coordinate.from_values(row.get(coordinate_columns[0]), row.get(coordinate_columns[1]))
        except ValueError:
            logger.debug("Ignoring cached row with invalid coordinates for %s", address[:50])
            return None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(
        self,
        address_source: Mapping[str, Any] | str | None,
        persist: bool = True,
    ) -> GeocodeResult:
        """Resolve structured address data or an address string.

        Args:
            address_source: Structured address mapping or a full address string.
            persist: Store a remotely resolved coordinate for later lookups.

        Returns:
            GeocodeResult; failures are reported on ``error``.
        """
        notices: list[RyanDataGeocodeError] = []
        data: dict[str, Any] | None = None
        if isinstance(address_source, Mapping):
            data, notices = self.backfill(AddressComposer.promote_street_line(address_source))

        address = self.compose(data if data is not None else address_source)
        if address is None:
            return GeocodeResult(
                raw_input=address_source,
                error=RyanDataGeocodeError.empty_address(address_source),
                notices=notices,
            )

        try:
            cached = self.lookup_cached(address)
        except RyanDataGeocodeError as e:
            logger.warning("Cache lookup failed for %s: %s", address[:50], str(e))
            notices.append(e)
            cached = None

        if cached is not None:
            logger.debug("Cache hit for %s", address[:50])
            return GeocodeResult(
                raw_input=address_source,
                address=address,
                coordinate=cached,
                source=GeocodeSource.CACHE,
                notices=notices,
            )

        provider = self.provider
        if provider is None:
            error = RyanDataGeocodeError.no_provider_configured(address, self.settings.service)
            logger.warning("No geocoding key configured; cannot resolve %s", address[:50])
            return GeocodeResult(
                raw_input=address_source, address=address, error=error, notices=notices
            )

        fetched = provider.geocode(address)
        result = GeocodeResult(
            raw_input=address_source,
            address=address,
            coordinate=fetched.coordinate,
            error=fetched.error,
            source=GeocodeSource.PROVIDER if fetched.error is None else None,
            components=dict(fetched.components),
            notices=notices,
        )
        if result.error is None and result.coordinate is None:
            result.error = RyanDataGeocodeError.provider_error(address, "no coordinate returned")

        if persist and result.is_resolved:
            self._persist(result, data or {})
        return result

    def build_record(
        self,
        address: str,
        coordinate: Coordinate,
        data: Mapping[str, Any],
        components: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Storage row for a resolved address.

        Holds the canonical address and its hash, the input address components
        the schema has columns for, the coordinate, and standardised
        components reported by the provider (which take precedence).
        """
        spec = self.settings.field_spec
        record: dict[str, Any] = {}

        for field in ADDRESS_COMPONENTS:
            column = spec.column(field)
            if not column:
                continue
            value = AddressComposer.resolve_component(spec, field, data)
            if value:
                record[column] = value

        address_column = spec.column(LogicalField.ADDRESS)
        if address_column:
            record[address_column] = address
        hash_column = spec.column(LogicalField.HASH)
        if hash_column:
            record[hash_column] = self.settings.hash_address(address)

        latitude_column = spec.column(LogicalField.LATITUDE)
        longitude_column = spec.column(LogicalField.LONGITUDE)
        if latitude_column:
            record[latitude_column] = coordinate.latitude
        if longitude_column:
            record[longitude_column] = coordinate.longitude

        return self.standardize(record, components or {})

    def standardize(self, record: dict[str, Any], components: Mapping[str, Any]) -> dict[str, Any]:
        """Overwrite address component columns with provider-standardised values."""
        spec = self.settings.field_spec
        for field in ADDRESS_COMPONENTS:
            column = spec.column(field)
            value = components.get(field.value)
            if column and not _is_empty(value):
                record[column] = value
        return record

    def _persist(self, result: GeocodeResult, data: Mapping[str, Any]) -> None:
        spec = self.settings.field_spec
        if self.storage is None or result.address is None or result.coordinate is None:
            return
        if not (spec.has_column(LogicalField.ADDRESS) or spec.has_column(LogicalField.HASH)):
            return
        # Rows are only stored with both coordinate columns
        if not (spec.has_column(LogicalField.LATITUDE) and spec.has_column(LogicalField.LONGITUDE)):
            return

        record = self.build_record(result.address, result.coordinate, data, result.components)
        try:
            result.persisted = bool(self.storage.insert(record))
        except Exception as e:
            logger.warning("Failed to store geocode for %s: %s", result.address[:50], str(e))
            result.notices.append(RyanDataGeocodeError.storage_error("insert", str(e)))
