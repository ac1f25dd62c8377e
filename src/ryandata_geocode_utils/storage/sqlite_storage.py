"""SQLite storage adapter.

Conditions and ordering are rendered to parameterised SQL. The math
functions the distance score needs are registered on the connection, since
SQLite builds do not reliably ship them.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ryandata_geocode_utils.core.expressions import (
    FUNCTIONS,
    Expression,
    OrderBy,
    SQLRenderer,
    quote_identifier,
)
from ryandata_geocode_utils.models.enums import LogicalField
from ryandata_geocode_utils.models.fields import underscore

logger = logging.getLogger(__name__)

REAL_COLUMNS = {LogicalField.LATITUDE.value, LogicalField.LONGITUDE.value}


def _null_safe(function: Callable[..., Any]) -> Callable[..., Any]:
    def wrapper(*args: Any) -> Any:
        if any(arg is None for arg in args):
            return None
        return function(*(float(arg) if isinstance(arg, str) else arg for arg in args))

    return wrapper


# Argument counts; exact counts take precedence over SQLite built-ins of the same name
FUNCTION_ARITY: dict[str, tuple[int, ...]] = {
    "RADIANS": (1,),
    "SIN": (1,),
    "COS": (1,),
    "SQRT": (1,),
    "POW": (2,),
    "ROUND": (1, 2),
}


def register_functions(connection: sqlite3.Connection) -> None:
    """Register RADIANS, COS, SIN, SQRT, POW, ROUND and friends on a connection."""
    for name, function in FUNCTIONS.items():
        for arity in FUNCTION_ARITY.get(name, (-1,)):
            connection.create_function(name, arity, _null_safe(function), deterministic=True)


class SQLiteStorage:
    """Geocode storage on one SQLite table.

    Also serves related-record lookups from tables named after the
    snake-cased entity (``PostalArea`` -> ``postal_area``) with an ``id``
    primary key.

    Example:
        >>> storage = SQLiteStorage(":memory:", table="locations")
        >>> storage.create_table()
        >>> storage.insert({"address": "Tampa, FL", "latitude": 27.95, "longitude": -82.46})
        True
    """

    def __init__(
        self,
        database: str = ":memory:",
        *,
        table: str = "geocodes",
        connection: sqlite3.Connection | None = None,
    ) -> None:
        """Initialize the storage.

        Args:
            database: Database path, used when no connection is given.
            table: Table holding the geocoded records.
            connection: Existing connection to use instead of opening one.
        """
        self.table = table
        self._owns_connection = connection is None
        self.connection = connection or sqlite3.connect(database)
        self.connection.row_factory = sqlite3.Row
        register_functions(self.connection)

    def close(self) -> None:
        if self._owns_connection:
            self.connection.close()

    def create_table(self, columns: Sequence[str] | None = None) -> None:
        """Create the geocode table if it does not exist.

        Args:
            columns: Columns besides ``id``. Defaults to every logical field.
        """
        names = list(columns) if columns is not None else [field.value for field in LogicalField]
        definitions = ["id INTEGER PRIMARY KEY AUTOINCREMENT"]
        for name in names:
            if name == "id":
                continue
            column_type = "REAL" if name in REAL_COLUMNS else "TEXT"
            definitions.append(f"{quote_identifier(name)} {column_type}")
        with self.connection:
            self.connection.execute(
                f"CREATE TABLE IF NOT EXISTS {quote_identifier(self.table)} ({', '.join(definitions)})"
            )

    def columns(self) -> set[str]:
        cursor = self.connection.execute(f"PRAGMA table_info({quote_identifier(self.table)})")
        return {row["name"] for row in cursor.fetchall()}

    def find_one(
        self, filters: Mapping[str, Any], not_null: Sequence[str] = ()
    ) -> dict[str, Any] | None:
        clauses = [f"{quote_identifier(key)} = ?" for key in filters]
        clauses += [f"{quote_identifier(name)} IS NOT NULL" for name in not_null]
        where = " AND ".join(clauses) or "1 = 1"
        cursor = self.connection.execute(
            f"SELECT * FROM {quote_identifier(self.table)} WHERE {where} LIMIT 1",
            list(filters.values()),
        )
        row = cursor.fetchone()
        return dict(row) if row is not None else None

    def insert(self, row: Mapping[str, Any]) -> bool:
        known = self.columns()
        data = {key: value for key, value in row.items() if key in known}
        if not data:
            return False
        names = ", ".join(quote_identifier(key) for key in data)
        placeholders = ", ".join("?" for _ in data)
        with self.connection:
            self.connection.execute(
                f"INSERT INTO {quote_identifier(self.table)} ({names}) VALUES ({placeholders})",
                list(data.values()),
            )
        logger.debug("Inserted row into %s: %s", self.table, sorted(data))
        return True

    def query(
        self,
        conditions: Mapping[str, Expression],
        order: OrderBy | None = None,
        limit: int | None = None,
        fields: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        renderer = SQLRenderer()
        columns = ", ".join(quote_identifier(name) for name in fields) if fields else "*"
        sql = (
            f"SELECT {columns} FROM {quote_identifier(self.table)} "
            f"WHERE {renderer.render_conditions(conditions)}"
        )
        if order is not None:
            sql += f" ORDER BY {renderer.render_order(order)}"
        if limit is not None:
            sql += " LIMIT ?"
            renderer.params.append(int(limit))
        logger.debug("SQLite query: %s", sql)
        cursor = self.connection.execute(sql, renderer.params)
        return [dict(row) for row in cursor.fetchall()]

    def count(self, conditions: Mapping[str, Expression]) -> int:
        renderer = SQLRenderer()
        sql = (
            f"SELECT COUNT(*) FROM {quote_identifier(self.table)} "
            f"WHERE {renderer.render_conditions(conditions)}"
        )
        return int(self.connection.execute(sql, renderer.params).fetchone()[0])

    def lookup(self, entity: str, record_id: Any, field: str) -> Any:
        """Read ``field`` of the ``entity`` row whose id is ``record_id``."""
        table = quote_identifier(underscore(entity))
        cursor = self.connection.execute(
            f"SELECT {quote_identifier(field)} FROM {table} WHERE id = ?",
            [record_id],
        )
        row = cursor.fetchone()
        return row[0] if row is not None else None
