from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ryandata_geocode_utils.models import GeocodeResult

if TYPE_CHECKING:
    import pandas as pd

    from ryandata_geocode_utils.service import GeocodeService

# Columns produced for each geocoded value
GEOCODE_COLUMNS: tuple[str, ...] = ("address", "latitude", "longitude", "source", "persisted", "error")


def _empty_row() -> dict[str, Any]:
    return {column: None for column in GEOCODE_COLUMNS}


def _result_row(result: GeocodeResult, errors: str) -> dict[str, Any]:
    if not result.is_resolved and errors == "raise":
        result.raise_for_error()
    return result.to_dict()


def _is_missing(value: Any) -> bool:
    import pandas as pd

    if isinstance(value, (dict, list, tuple)):
        return not value
    return value is None or value == "" or bool(pd.isna(value))


class GeocodeAccessor:
    """Pandas accessor for geocoding.

    Series values may be full address strings or dicts of address fields.

    Usage:
        >>> from ryandata_geocode_utils.pandas_ext import register_accessor
        >>> register_accessor()
        >>> df = pd.DataFrame({"address": ["1209 La Brad Lane, Tampa, FL"]})
        >>> df["address"].geo.geocode()
    """

    def __init__(self, pandas_obj: pd.Series) -> None:
        self._obj = pandas_obj
        self._service: GeocodeService | None = None

    def _get_service(self) -> GeocodeService:
        if self._service is None:
            from ryandata_geocode_utils.service import get_default_service

            self._service = get_default_service()
        return self._service

    def geocode(
        self,
        *,
        persist: bool = True,
        errors: str = "coerce",
        service: GeocodeService | None = None,
    ) -> pd.DataFrame:
        """Geocode every value in the Series.

        Args:
            persist: Store remotely resolved coordinates.
            errors: "coerce" keeps failures as rows with ``error`` set,
                "raise" raises the first failure.
            service: Optional GeocodeService to use.

        Returns:
            DataFrame with address, latitude, longitude, source, persisted and
            error columns, indexed like the Series.
        """
        import pandas as pd

        svc = service or self._get_service()
        rows = [
            _empty_row() if _is_missing(value) else _result_row(svc.geocode(value, persist=persist), errors)
            for value in self._obj
        ]
        return pd.DataFrame(rows, index=self._obj.index, columns=list(GEOCODE_COLUMNS))

    def compose(self, *, service: GeocodeService | None = None) -> pd.Series:
        """Canonical address string for every value in the Series."""
        import pandas as pd

        svc = service or self._get_service()
        return pd.Series(
            [None if _is_missing(value) else svc.compose(value) for value in self._obj],
            index=self._obj.index,
            dtype=object,
        )


def register_accessor(name: str = "geo") -> None:
    """Register the geocoding accessor on pandas Series.

    After calling this, you can use:
        >>> series.geo.geocode()
        >>> series.geo.compose()

    Args:
        name: Name for the accessor (default: "geo").
    """
    import pandas as pd

    if not hasattr(pd.Series, name):
        pd.api.extensions.register_series_accessor(name)(GeocodeAccessor)


def geocode_dataframe(
    df: pd.DataFrame,
    *,
    columns: list[str] | None = None,
    prefix: str = "",
    persist: bool = True,
    errors: str = "coerce",
    service: GeocodeService | None = None,
    inplace: bool = False,
) -> pd.DataFrame:
    """Geocode each row of a DataFrame from its address columns.

    Args:
        df: Input DataFrame; each row is treated as structured address data.
        columns: Columns to use as address fields. Defaults to all columns.
        prefix: Prefix for the new result columns.
        persist: Store remotely resolved coordinates.
        errors: "coerce" or "raise".
        service: Optional GeocodeService to use.
        inplace: If True, modify df in place.

    Returns:
        DataFrame with the geocode result columns added.
    """
    import pandas as pd

    from ryandata_geocode_utils.service import get_default_service

    svc = service or get_default_service()
    if not inplace:
        df = df.copy()

    source = df[columns] if columns is not None else df
    rows = []
    for record in source.to_dict(orient="records"):
        data = {str(key): value for key, value in record.items() if not _is_missing(value)}
        rows.append(_result_row(svc.geocode(data, persist=persist), errors) if data else _empty_row())

    results = pd.DataFrame(rows, index=df.index, columns=list(GEOCODE_COLUMNS))
    for column in results.columns:
        df[f"{prefix}{column}"] = results[column]
    return df


def add_distance_column(
    df: pd.DataFrame,
    origin: Any,
    *,
    unit: str = "k",
    latitude_column: str = "latitude",
    longitude_column: str = "longitude",
    column: str = "distance",
    service: GeocodeService | None = None,
    inplace: bool = False,
) -> pd.DataFrame:
    """Add the haversine distance from an origin to every row.

    Rows missing either coordinate get NaN.

    Args:
        df: DataFrame with latitude and longitude columns.
        origin: (latitude, longitude), Coordinate, or an address to resolve.
        unit: k, m, f, i or n.
        latitude_column: Name of the latitude column.
        longitude_column: Name of the longitude column.
        column: Name of the new column.
        service: Service used to resolve an address origin.
        inplace: If True, modify df in place.

    Returns:
        DataFrame with the distance column.

    Raises:
        RyanDataGeocodeError: If the origin cannot be resolved.
    """
    from ryandata_geocode_utils.core.distance import DistanceCalculator
    from ryandata_geocode_utils.service import get_default_service

    svc = service or get_default_service()
    reference = svc.search.resolve_origin(origin)
    calculator = DistanceCalculator()

    if not inplace:
        df = df.copy()
    df[column] = [
        calculator.row_distance(row, reference, latitude_column, longitude_column, unit)
        for row in df[[latitude_column, longitude_column]].to_dict(orient="records")
    ]
    df[column] = df[column].astype(float)
    return df
