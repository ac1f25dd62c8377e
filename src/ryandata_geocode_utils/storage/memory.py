from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ryandata_geocode_utils.storage.base import DEFAULT_COLUMNS, BaseRowStorage


class InMemoryStorage(BaseRowStorage):
    """List-backed storage, mostly for tests and small batch jobs.

    Example:
        >>> storage = InMemoryStorage(rows=[{"id": 1, "latitude": 1.0, "longitude": 2.0}])
        >>> storage.count({})
        1
    """

    def __init__(
        self,
        columns: Sequence[str] | None = None,
        rows: Iterable[Mapping[str, Any]] | None = None,
    ) -> None:
        """Initialize the storage.

        Args:
            columns: Schema columns. Defaults to ``id`` plus every logical field.
            rows: Initial rows.
        """
        self._columns = set(columns) if columns is not None else set(DEFAULT_COLUMNS)
        self._rows: list[dict[str, Any]] = []
        self._next_id = 1
        for row in rows or ():
            self.insert(row)

    def columns(self) -> set[str]:
        return set(self._columns)

    @property
    def rows(self) -> list[dict[str, Any]]:
        """Copies of the stored rows, in insertion order."""
        return [dict(row) for row in self._rows]

    def __len__(self) -> int:
        return len(self._rows)

    def _iter_rows(self) -> Iterable[dict[str, Any]]:
        return iter(self._rows)

    def _append(self, row: dict[str, Any]) -> None:
        if "id" in self._columns:
            if row.get("id") is None:
                row["id"] = self._next_id
            if isinstance(row["id"], int):
                self._next_id = max(self._next_id, row["id"] + 1)
        self._rows.append(row)
