"""Tests for cache-first address resolution."""

from __future__ import annotations

import hashlib

import httpx
import pytest

from ryandata_geocode_utils import (
    AddressFieldSpec,
    GeocodeErrorType,
    GeocodeResolver,
    GeocodeSettings,
    GeocodeSource,
    InMemoryStorage,
    MappingRelatedLookup,
    RyanDataGeocodeError,
    SQLiteStorage,
)
from ryandata_geocode_utils.models import rules_from_config
from tests.fakes import csv_transport

LA_BRAD = {"address1": "1209 La Brad Lane", "city": "Tampa", "state": "FL"}
LA_BRAD_TEXT = "1209 La Brad Lane, Tampa, FL"
LA_BRAD_POINT = (28.0792, -82.4735)


def make_resolver(
    storage: object = None,
    *,
    key: str | None = "secret",
    calls: list[str] | None = None,
    **settings: object,
) -> GeocodeResolver:
    return GeocodeResolver(
        GeocodeSettings(service="google", key=key, **settings),
        storage=storage,
        transport=csv_transport({LA_BRAD_TEXT: LA_BRAD_POINT}, calls),
    )


class TestCache:
    def test_cache_hit_skips_provider(self) -> None:
        calls: list[str] = []
        storage = InMemoryStorage(
            rows=[{"address": LA_BRAD_TEXT, "latitude": 28.0792, "longitude": -82.4735}]
        )
        result = make_resolver(storage, calls=calls).resolve(LA_BRAD)

        assert result.is_resolved
        assert result.source is GeocodeSource.CACHE
        assert result.coordinate.as_tuple() == LA_BRAD_POINT
        assert calls == []

    def test_cache_hit_without_key(self) -> None:
        storage = InMemoryStorage(
            rows=[{"address": LA_BRAD_TEXT, "latitude": "28.0792", "longitude": "-82.4735"}]
        )
        result = make_resolver(storage, key=None).resolve(LA_BRAD_TEXT)

        assert result.source is GeocodeSource.CACHE
        assert result.latitude == 28.0792

    def test_cached_row_without_coordinate_is_a_miss(self) -> None:
        calls: list[str] = []
        storage = InMemoryStorage(rows=[{"address": LA_BRAD_TEXT, "latitude": None, "longitude": None}])
        result = make_resolver(storage, calls=calls).resolve(LA_BRAD)

        assert result.source is GeocodeSource.PROVIDER
        assert calls == [LA_BRAD_TEXT]

    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    def test_placeholder_row_does_not_hide_later_geocode(self, backend: str) -> None:
        placeholder = {"address": LA_BRAD_TEXT, "latitude": None, "longitude": None}
        if backend == "sqlite":
            storage = SQLiteStorage(":memory:")
            storage.create_table()
            storage.insert(placeholder)
        else:
            storage = InMemoryStorage(rows=[placeholder])
        calls: list[str] = []
        resolver = make_resolver(storage, calls=calls)

        sources = [
            resolver.resolve(LA_BRAD).source,
            resolver.resolve(LA_BRAD, persist=False).source,
            resolver.resolve(LA_BRAD).source,
        ]

        assert sources == [GeocodeSource.PROVIDER, GeocodeSource.CACHE, GeocodeSource.CACHE]
        assert calls == [LA_BRAD_TEXT]
        assert storage.count({}) == 2

    def test_persist_then_cache(self) -> None:
        calls: list[str] = []
        storage = InMemoryStorage()
        resolver = make_resolver(storage, calls=calls)

        first = resolver.resolve(LA_BRAD)
        second = resolver.resolve(LA_BRAD)

        assert first.source is GeocodeSource.PROVIDER
        assert first.persisted
        assert second.source is GeocodeSource.CACHE
        assert second.coordinate == first.coordinate
        assert len(calls) == 1

    def test_persisted_record_holds_components(self) -> None:
        storage = InMemoryStorage()
        make_resolver(storage).resolve({"addr": "1209 La Brad Lane", "city": "Tampa", "state": "FL"})

        (row,) = storage.rows
        assert row["address"] == LA_BRAD_TEXT
        assert row["address1"] == "1209 La Brad Lane"
        assert row["city"] == "Tampa"
        assert (row["latitude"], row["longitude"]) == LA_BRAD_POINT
        assert row.get("hash") is None

    def test_persist_false_stores_nothing(self) -> None:
        storage = InMemoryStorage()
        result = make_resolver(storage).resolve(LA_BRAD, persist=False)

        assert result.is_resolved
        assert not result.persisted
        assert len(storage) == 0

    def test_hash_column_is_cache_key(self) -> None:
        digest = hashlib.sha1(LA_BRAD_TEXT.encode("utf-8")).hexdigest()
        storage = InMemoryStorage(
            rows=[{"address": "stale text", "hash": digest, "latitude": 1.5, "longitude": 2.5}]
        )
        resolver = make_resolver(storage, field_spec=AddressFieldSpec.from_config(columns={"hash": True}))

        assert resolver.cache_filters(LA_BRAD_TEXT) == {"hash": digest}
        result = resolver.resolve(LA_BRAD)
        assert result.source is GeocodeSource.CACHE
        assert result.coordinate.as_tuple() == (1.5, 2.5)

    def test_hash_written_on_persist(self) -> None:
        storage = InMemoryStorage()
        resolver = make_resolver(
            storage,
            hash_algorithm="md5",
            field_spec=AddressFieldSpec.from_config(columns={"hash": True}),
        )
        resolver.resolve(LA_BRAD_TEXT)

        assert storage.rows[0]["hash"] == hashlib.md5(LA_BRAD_TEXT.encode("utf-8")).hexdigest()

    def test_schema_without_coordinates_is_not_a_cache(self) -> None:
        calls: list[str] = []
        storage = InMemoryStorage(columns=["id", "address"], rows=[{"address": LA_BRAD_TEXT}])
        resolver = make_resolver(storage, calls=calls)

        assert resolver.cache_filters(LA_BRAD_TEXT) is None
        assert resolver.resolve(LA_BRAD).source is GeocodeSource.PROVIDER
        assert calls == [LA_BRAD_TEXT]

    def test_schema_without_coordinates_is_not_persisted(self) -> None:
        storage = InMemoryStorage(columns=["id", "address", "city", "state"])
        resolver = make_resolver(storage)

        results = [resolver.resolve(LA_BRAD) for _ in range(3)]

        assert all(result.is_resolved for result in results)
        assert not any(result.persisted for result in results)
        assert len(storage) == 0

    def test_schema_without_address_or_hash_is_not_persisted(self) -> None:
        storage = InMemoryStorage(columns=["id", "latitude", "longitude"])
        result = make_resolver(storage).resolve(LA_BRAD)

        assert result.is_resolved
        assert not result.persisted
        assert len(storage) == 0

    def test_sqlite_round_trip(self) -> None:
        storage = SQLiteStorage(":memory:")
        storage.create_table()
        calls: list[str] = []
        resolver = make_resolver(storage, calls=calls)

        assert resolver.resolve(LA_BRAD).persisted
        assert resolver.resolve(LA_BRAD_TEXT).source is GeocodeSource.CACHE
        assert len(calls) == 1
        storage.close()


class TestFailures:
    def test_no_key_and_no_cache(self) -> None:
        result = make_resolver(InMemoryStorage(), key=None).resolve(LA_BRAD)

        assert not result.is_resolved
        assert result.error.error_type is GeocodeErrorType.NO_PROVIDER_CONFIGURED
        assert result.address == LA_BRAD_TEXT
        with pytest.raises(RyanDataGeocodeError):
            result.raise_for_error()

    def test_injected_provider_used_without_key(self) -> None:
        from ryandata_geocode_utils.providers import GoogleCsvProvider

        provider = GoogleCsvProvider(transport=csv_transport({LA_BRAD_TEXT: LA_BRAD_POINT}))
        resolver = GeocodeResolver(GeocodeSettings(key=None), provider=provider)

        assert resolver.resolve(LA_BRAD).coordinate.as_tuple() == LA_BRAD_POINT

    def test_provider_error_is_not_persisted(self) -> None:
        storage = InMemoryStorage()
        result = make_resolver(storage).resolve("Nowhere Special")

        assert result.error.error_type is GeocodeErrorType.PROVIDER_ERROR
        assert result.source is None
        assert len(storage) == 0

    @pytest.mark.parametrize("source", [{}, {"city": "  "}, "", "   ", None, ["not", "an", "address"]])
    def test_empty_address(self, source: object) -> None:
        calls: list[str] = []
        result = make_resolver(InMemoryStorage(), calls=calls).resolve(source)

        assert result.error.error_type is GeocodeErrorType.EMPTY_ADDRESS
        assert calls == []

    def test_storage_failure_becomes_notice(self) -> None:
        class BrokenStorage(InMemoryStorage):
            def find_one(self, filters):
                raise RuntimeError("disk on fire")

            def insert(self, row):
                raise RuntimeError("disk still on fire")

        result = make_resolver(BrokenStorage()).resolve(LA_BRAD)

        assert result.is_resolved
        assert not result.persisted
        assert [notice.error_type for notice in result.notices] == [
            GeocodeErrorType.STORAGE_ERROR,
            GeocodeErrorType.STORAGE_ERROR,
        ]


class TestCrossEntityFields:
    RELATED = {
        "City": {7: {"name": "Tampa"}},
        "State": {3: {"name": "FL", "country_id": 1}},
        "Country": {1: {"name": "US"}},
    }

    def make(self, related: object = None) -> GeocodeResolver:
        settings = GeocodeSettings(
            key=None,
            rules=rules_from_config({"city": "City", "state": "State", "country": "State.Country"}),
        )
        return GeocodeResolver(settings, related_lookup=related)

    def test_backfill_with_hop(self) -> None:
        resolver = self.make(MappingRelatedLookup(self.RELATED))
        filled, notices = resolver.backfill({"address1": "1209 La Brad Lane", "city_id": 7, "state_id": "3"})

        assert notices == []
        assert filled["city"] == "Tampa"
        assert filled["state"] == "FL"
        assert filled["country"] == "US"
        assert resolver.compose(filled) == "1209 La Brad Lane, Tampa, FL, US"

    def test_present_values_are_kept(self) -> None:
        resolver = self.make(MappingRelatedLookup(self.RELATED))
        filled, _ = resolver.backfill({"city": "Lutz", "city_id": 7, "state_id": 3})

        assert filled["city"] == "Lutz"

    def test_missing_record_is_a_notice(self) -> None:
        resolver = self.make(MappingRelatedLookup(self.RELATED))
        result = resolver.resolve({"address1": "1209 La Brad Lane", "city_id": 99, "state_id": 3})

        assert result.address == "1209 La Brad Lane, FL, US"
        assert result.error.error_type is GeocodeErrorType.NO_PROVIDER_CONFIGURED
        (notice,) = result.notices
        assert notice.error_type is GeocodeErrorType.UNRESOLVED_CROSS_ENTITY_FIELD
        assert notice.context["field"] == "city"

    def test_no_lookup_configured(self) -> None:
        resolver = self.make()
        _, notices = resolver.backfill({"city_id": 7})

        assert {notice.context["field"] for notice in notices} == {"city", "state", "country"}

    def test_sqlite_related_tables(self) -> None:
        storage = SQLiteStorage(":memory:")
        storage.create_table()
        with storage.connection:
            storage.connection.execute("CREATE TABLE city (id INTEGER PRIMARY KEY, name TEXT)")
            storage.connection.execute("INSERT INTO city (id, name) VALUES (7, 'Tampa')")
        settings = GeocodeSettings(key=None, rules=rules_from_config(["city"]))
        resolver = GeocodeResolver(settings, storage=storage, related_lookup=storage)

        filled, notices = resolver.backfill({"address1": "1 Main St", "city_id": 7})

        assert filled["city"] == "Tampa"
        assert notices == []
        storage.close()


def test_provider_components_standardize_record() -> None:
    payload = {
        "status": "OK",
        "results": [
            {
                "formatted_address": "1209 La Brad Ln, Tampa, FL 33613, USA",
                "address_components": [
                    {"long_name": "Tampa", "types": ["locality"]},
                    {"long_name": "33613", "types": ["postal_code"]},
                ],
                "geometry": {"location": {"lat": 28.0792, "lng": -82.4735}},
            }
        ],
    }
    storage = InMemoryStorage()
    resolver = GeocodeResolver(
        GeocodeSettings(service="google-v3", key="k"),
        storage=storage,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)),
    )
    result = resolver.resolve({"address1": "1209 La Brad Lane", "city": "tampa", "state": "FL"})

    assert result.persisted
    row = storage.rows[0]
    assert row["city"] == "Tampa"
    assert row["zip"] == "33613"
    assert row["state"] == "FL"
    # The cache key stays the composed address
    assert row["address"] == "1209 La Brad Lane, tampa, FL"
