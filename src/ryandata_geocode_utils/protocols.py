from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ryandata_geocode_utils.core.expressions import Expression, OrderBy
    from ryandata_geocode_utils.models import GeocodeResult


@runtime_checkable
class GeocodeStorageProtocol(Protocol):
    """Protocol for the persistence layer behind geocoding and near searches.

    Implementations store geocoded records and evaluate the expression trees
    built by ProximityQueryBuilder, either in memory or by rendering them in
    their own query language.
    """

    def columns(self) -> set[str]:
        """Column names available on the stored records."""
        ...

    def find_one(
        self, filters: Mapping[str, Any], not_null: Sequence[str] = ()
    ) -> dict[str, Any] | None:
        """Find one record whose columns equal the given values.

        Args:
            filters: Column name to exact value.
            not_null: Columns that must hold a value on the returned record.

        Returns:
            The first matching record, or None.
        """
        ...

    def insert(self, row: Mapping[str, Any]) -> bool:
        """Insert a new record.

        Args:
            row: Column values; keys the schema lacks are ignored.

        Returns:
            True if a record was written.
        """
        ...

    def query(
        self,
        conditions: Mapping[str, Expression],
        order: OrderBy | None = None,
        limit: int | None = None,
        fields: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return records matching every condition.

        Args:
            conditions: Named boolean expressions, all of which must hold.
            order: Optional ordering expression.
            limit: Maximum number of records.
            fields: Columns to return. None returns all columns.

        Returns:
            Matching records as dicts.
        """
        ...

    def count(self, conditions: Mapping[str, Expression]) -> int:
        """Count records matching every condition."""
        ...


@runtime_checkable
class GeocodeProviderProtocol(Protocol):
    """Protocol for remote geocoding services.

    Implementations turn one canonical address string into a coordinate,
    reporting failures on the result instead of raising.
    """

    @property
    def name(self) -> str:
        """Profile name of this provider."""
        ...

    def geocode(self, address: str) -> GeocodeResult:
        """Resolve an address remotely.

        Args:
            address: Canonical address string.

        Returns:
            GeocodeResult with the coordinate and any standardised components,
            or with ``error`` set.
        """
        ...


@runtime_checkable
class RelatedRecordLookupProtocol(Protocol):
    """Read one field of a related record, used to backfill address components."""

    def lookup(self, entity: str, record_id: Any, field: str) -> Any:
        """Return ``field`` of the ``entity`` record with id ``record_id``.

        Returns:
            The value, or None if the record does not exist.
        """
        ...
