from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ryandata_geocode_utils.core.expressions import Expression, OrderBy, evaluate, matches
from ryandata_geocode_utils.models.enums import LogicalField, SortDirection

logger = logging.getLogger(__name__)

# Schema used when a storage is created without explicit columns
DEFAULT_COLUMNS: tuple[str, ...] = ("id", *(field.value for field in LogicalField))


def project(row: Mapping[str, Any], fields: Sequence[str] | None) -> dict[str, Any]:
    """Copy a row, keeping only ``fields`` when given."""
    if fields is None:
        return dict(row)
    return {name: row.get(name) for name in fields}


class BaseRowStorage(ABC):
    """Abstract base class for storages that evaluate queries in Python.

    Conditions and ordering are evaluated row by row with
    ``core.expressions.evaluate``. Subclasses provide the rows and append
    new ones.
    """

    @abstractmethod
    def columns(self) -> set[str]:
        """Column names of the stored records."""
        ...

    @abstractmethod
    def _iter_rows(self) -> Iterable[dict[str, Any]]:
        """Yield every stored row as a dict."""
        ...

    @abstractmethod
    def _append(self, row: dict[str, Any]) -> None:
        """Store one new row, already restricted to known columns."""
        ...

    def find_one(
        self, filters: Mapping[str, Any], not_null: Sequence[str] = ()
    ) -> dict[str, Any] | None:
        for row in self._iter_rows():
            if not all(row.get(key) == value for key, value in filters.items()):
                continue
            if all(row.get(name) not in (None, "") for name in not_null):
                return dict(row)
        return None

    def insert(self, row: Mapping[str, Any]) -> bool:
        known = self.columns()
        data = {key: value for key, value in row.items() if key in known}
        if not data:
            return False
        self._append(data)
        logger.debug("Inserted row into %s: %s", type(self).__name__, sorted(data))
        return True

    def query(
        self,
        conditions: Mapping[str, Expression],
        order: OrderBy | None = None,
        limit: int | None = None,
        fields: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        rows = [row for row in self._iter_rows() if matches(conditions, row)]

        if order is not None:
            keyed = [(evaluate(order.expression, row), row) for row in rows]
            # NULL scores sort after every value in either direction
            present = [item for item in keyed if item[0] is not None]
            missing = [item for item in keyed if item[0] is None]
            present.sort(key=lambda item: item[0], reverse=order.direction is SortDirection.DESC)
            rows = [row for _, row in present + missing]

        if limit is not None:
            rows = rows[:limit]
        return [project(row, fields) for row in rows]

    def count(self, conditions: Mapping[str, Expression]) -> int:
        return sum(1 for row in self._iter_rows() if matches(conditions, row))
