"""Tests for near searches over stored records.

Every test runs against the in-memory and the SQLite adapter.
"""

from __future__ import annotations

import pytest

from ryandata_geocode_utils import (
    GeocodeErrorType,
    GeocodeResolver,
    GeocodeResult,
    GeocodeSettings,
    ProximitySearchService,
    haversine_distance,
)
from ryandata_geocode_utils.core.expressions import compare, field, literal
from tests.fakes import ORIGIN, csv_transport


def make_search(storage, coordinates: dict | None = None, key: str | None = None) -> ProximitySearchService:
    resolver = GeocodeResolver(
        GeocodeSettings(service="google", key=key),
        storage=storage,
        transport=csv_transport(coordinates or {}),
    )
    return ProximitySearchService(resolver)


def addresses(result) -> list[str]:
    return [row["address"] for row in result]


class TestNear:
    def test_all_rows_nearest_first(self, stores) -> None:
        result = make_search(stores).near(ORIGIN)

        assert result.is_valid
        assert addresses(result) == [
            "Cafe, Tampa, FL",
            "Market, Tampa, FL",
            "Depot, Tampa, FL",
            "Outlet, Tampa, FL",
        ]
        assert result.count == 4
        assert result.origin.as_tuple() == ORIGIN

    def test_radius_in_kilometers(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, 5, "k")

        assert addresses(result) == ["Cafe, Tampa, FL", "Market, Tampa, FL"]

    def test_radius_in_miles(self, stores) -> None:
        # 10 miles is about 16.1 km
        result = make_search(stores).near(ORIGIN, 10, "m")

        assert addresses(result) == ["Cafe, Tampa, FL", "Market, Tampa, FL", "Depot, Tampa, FL"]

    def test_rows_annotated_with_distance(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, 15, "m")

        for row in result:
            expected = haversine_distance((row["latitude"], row["longitude"]), ORIGIN, "m")
            assert round(row["distance"], 3) == round(expected, 3)

    def test_descending(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, direction="DESC")

        assert addresses(result) == [
            "Outlet, Tampa, FL",
            "Depot, Tampa, FL",
            "Market, Tampa, FL",
            "Cafe, Tampa, FL",
        ]

    def test_first(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, find="first")

        assert len(result) == 1
        assert result.first["address"] == "Cafe, Tampa, FL"

    def test_count(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, 15, "k", find="count")

        assert result.count == 3
        assert result.rows == []

    def test_origin_and_shared_coordinates_excluded(self, stores) -> None:
        result = make_search(stores).near(ORIGIN)

        assert "Origin, Tampa, FL" not in addresses(result)
        assert "Same Latitude, Tampa, FL" not in addresses(result)
        assert "Unplaced, Tampa, FL" not in addresses(result)

    def test_extra_equality_condition(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, 15, extra_filters={"conditions": {"category": "store"}})

        assert addresses(result) == ["Market, Tampa, FL", "Depot, Tampa, FL"]

    def test_extra_expression_condition(self, stores) -> None:
        north = compare(field("latitude"), ">", literal(28.09))
        result = make_search(stores).near(ORIGIN, extra_filters={"conditions": {"north": north}})

        assert addresses(result) == ["Market, Tampa, FL", "Outlet, Tampa, FL"]

    def test_limit_and_fields(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, extra_filters={"limit": 2, "fields": ["address"]})

        assert len(result) == 2
        assert set(result.first) == {"address", "latitude", "longitude", "distance"}

    def test_address_origin_is_resolved_without_persisting(self, stores) -> None:
        search = make_search(stores, {"1209 La Brad Lane, Tampa, FL": ORIGIN}, key="secret")
        before = stores.count({})

        result = search.near({"address1": "1209 La Brad Lane", "city": "Tampa", "state": "FL"}, 5)

        assert addresses(result) == ["Cafe, Tampa, FL", "Market, Tampa, FL"]
        assert stores.count({}) == before

    def test_stored_address_origin_uses_cache(self, stores) -> None:
        result = make_search(stores).near("Market, Tampa, FL", 5)

        assert result.is_valid
        assert result.origin.as_tuple() == (28.1, -82.45)
        assert addresses(result) == ["Cafe, Tampa, FL", "Origin, Tampa, FL"]


class TestNearErrors:
    def test_unresolvable_origin(self, stores) -> None:
        result = make_search(stores).near("Nowhere, FL")

        assert not result.is_valid
        assert result.error.error_type is GeocodeErrorType.INVALID_QUERY_ORIGIN
        assert result.rows == []

    @pytest.mark.parametrize("origin", [(91.0, 0.0), (0.0, -181.0), ["28.1", "200"]])
    def test_out_of_range_origin(self, stores, origin) -> None:
        result = make_search(stores).near(origin)

        assert result.error.error_type is GeocodeErrorType.INVALID_QUERY_ORIGIN

    @pytest.mark.parametrize("radius", [0, -5])
    def test_non_positive_radius(self, stores, radius) -> None:
        result = make_search(stores).near(ORIGIN, radius)

        assert result.error.error_type is GeocodeErrorType.INVALID_QUERY

    def test_unknown_find(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, find="some")

        assert result.error.error_type is GeocodeErrorType.INVALID_QUERY

    def test_unknown_direction(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, direction="up")

        assert result.error.error_type is GeocodeErrorType.INVALID_QUERY

    def test_unknown_unit_means_kilometers(self, stores) -> None:
        result = make_search(stores).near(ORIGIN, 5, "parsecs")

        assert result.unit.value == "k"
        assert addresses(result) == ["Cafe, Tampa, FL", "Market, Tampa, FL"]

    def test_origin_result_without_coordinate(self, stores, monkeypatch: pytest.MonkeyPatch) -> None:
        search = make_search(stores)
        monkeypatch.setattr(search.resolver, "resolve", lambda origin, persist=False: GeocodeResult(raw_input=origin))

        result = search.near("Somewhere, FL")

        assert result.error.error_type is GeocodeErrorType.INVALID_QUERY_ORIGIN
        assert result.rows == []

    def test_storage_without_coordinates(self) -> None:
        from ryandata_geocode_utils import InMemoryStorage

        result = make_search(InMemoryStorage(columns=["id", "address"])).near(ORIGIN)

        assert result.error.error_type is GeocodeErrorType.INVALID_QUERY

    def test_storage_failure(self) -> None:
        from ryandata_geocode_utils import InMemoryStorage

        class BrokenStorage(InMemoryStorage):
            def query(self, conditions, order=None, limit=None, fields=None):
                raise RuntimeError("lost connection")

        result = make_search(BrokenStorage()).near(ORIGIN)

        assert result.error.error_type is GeocodeErrorType.STORAGE_ERROR
        with pytest.raises(Exception, match="lost connection"):
            result.raise_for_error()
