import json

import httpx
import pytest

from ryandata_geocode_utils import GeocodeErrorType, GeocodeProviderProtocol, GeocodeSource
from ryandata_geocode_utils.providers import (
    GoogleCsvProvider,
    GoogleGeocodingV3Provider,
    GooglePlacemarkProvider,
    ProviderFactory,
    YahooProvider,
    get_profile,
)

ADDRESS = "1209 La Brad Lane, Tampa, FL"

PLACEMARK_PAYLOAD = {
    "name": ADDRESS,
    "Status": {"code": 200, "request": "geocode"},
    "Placemark": [
        {
            "id": "p1",
            "address": "1209 La Brad Ln, Tampa, FL 33613, USA",
            "AddressDetails": {
                "Accuracy": 8,
                "Country": {
                    "CountryNameCode": "US",
                    "AdministrativeArea": {
                        "AdministrativeAreaName": "FL",
                        "SubAdministrativeArea": {
                            "SubAdministrativeAreaName": "Hillsborough",
                            "Locality": {
                                "LocalityName": "Tampa",
                                "Thoroughfare": {"ThoroughfareName": "1209 La Brad Ln"},
                                "PostalCode": {"PostalCodeNumber": "33613"},
                            },
                        },
                    },
                },
            },
            "Point": {"coordinates": [28.0792, -82.4735, 0]},
        }
    ],
}

V3_PAYLOAD = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "1209 La Brad Ln, Tampa, FL 33613, USA",
            "address_components": [
                {"long_name": "1209", "short_name": "1209", "types": ["street_number"]},
                {"long_name": "La Brad Lane", "short_name": "La Brad Ln", "types": ["route"]},
                {"long_name": "Tampa", "short_name": "Tampa", "types": ["locality", "political"]},
                {
                    "long_name": "Florida",
                    "short_name": "FL",
                    "types": ["administrative_area_level_1", "political"],
                },
                {
                    "long_name": "United States",
                    "short_name": "US",
                    "types": ["country", "political"],
                },
                {"long_name": "33613", "short_name": "33613", "types": ["postal_code"]},
            ],
            "geometry": {"location": {"lat": 28.0792, "lng": -82.4735}},
        }
    ],
}


def test_google_csv_builds_request_and_parses_coordinates() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "maps.google.com"
        assert request.url.params["q"] == ADDRESS
        assert request.url.params["output"] == "csv"
        assert request.url.params["key"] == "secret"
        return httpx.Response(200, text="200,8,28.0792,-82.4735")

    provider = GoogleCsvProvider(key="secret", transport=httpx.MockTransport(handler))
    result = provider.geocode(ADDRESS)

    assert result.is_resolved
    assert result.coordinate.as_tuple() == (28.0792, -82.4735)
    assert result.source is GeocodeSource.PROVIDER
    assert result.address == ADDRESS
    assert result.components == {}


def test_yahoo_reads_xml_response() -> None:
    body = (
        '<?xml version="1.0"?><ResultSet><Result precision="address">'
        "<Latitude>28.0792</Latitude><Longitude>-82.4735</Longitude>"
        "<Address>1209 LA BRAD LN</Address></Result></ResultSet>"
    )

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["appid"] == "app-id"
        assert request.url.params["location"] == ADDRESS
        return httpx.Response(200, text=body)

    provider = YahooProvider(key="app-id", transport=httpx.MockTransport(handler))
    result = provider.geocode(ADDRESS)

    assert result.is_resolved
    assert (result.latitude, result.longitude) == (28.0792, -82.4735)


def test_placemark_reads_latitude_first_and_components() -> None:
    provider = GooglePlacemarkProvider(
        key="k",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=PLACEMARK_PAYLOAD)),
    )
    result = provider.geocode(ADDRESS)

    assert result.is_resolved
    assert (result.latitude, result.longitude) == (28.0792, -82.4735)
    assert result.components == {
        "address": "1209 La Brad Ln, Tampa, FL 33613, USA",
        "address1": "1209 La Brad Ln",
        "city": "Tampa",
        "state": "FL",
        "zip": "33613",
        "country": "US",
    }


def test_placemark_longitude_first_option() -> None:
    payload = {
        "Status": {"code": 200},
        "Placemark": [{"Point": {"coordinates": [-82.4735, 28.0792, 0]}}],
    }
    provider = GooglePlacemarkProvider(
        longitude_first=True,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)),
    )
    result = provider.geocode(ADDRESS)

    assert (result.latitude, result.longitude) == (28.0792, -82.4735)


def test_placemark_bad_status() -> None:
    payload = {"Status": {"code": 602}, "Placemark": []}
    provider = GooglePlacemarkProvider(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)),
    )
    result = provider.geocode(ADDRESS)

    assert not result.is_resolved
    assert result.error.error_type is GeocodeErrorType.PROVIDER_ERROR
    assert "602" in str(result.error)


def test_geocoding_v3_components() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.scheme == "https"
        assert request.url.params["address"] == ADDRESS
        return httpx.Response(200, json=V3_PAYLOAD)

    provider = GoogleGeocodingV3Provider(key="k", transport=httpx.MockTransport(handler))
    result = provider.geocode(ADDRESS)

    assert result.is_resolved
    assert (result.latitude, result.longitude) == (28.0792, -82.4735)
    assert result.components == {
        "address": "1209 La Brad Ln, Tampa, FL 33613, USA",
        "address1": "1209 La Brad Lane",
        "city": "Tampa",
        "state": "Florida",
        "zip": "33613",
        "country": "US",
    }


def test_geocoding_v3_error_message() -> None:
    payload = {"status": "REQUEST_DENIED", "error_message": "The provided API key is invalid.", "results": []}
    provider = GoogleGeocodingV3Provider(
        key="bad",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)),
    )
    result = provider.geocode(ADDRESS)

    assert result.error is not None
    assert "REQUEST_DENIED" in str(result.error)
    assert "API key is invalid" in str(result.error)


@pytest.mark.parametrize(
    ("response", "detail"),
    [
        (httpx.Response(500, text="oops"), "HTTP 500"),
        (httpx.Response(200, text="   "), "empty response"),
        (httpx.Response(200, text="602,0,0,0"), "no coordinates in response"),
        (httpx.Response(200, text="200,8,north,west"), "invalid coordinates"),
        (httpx.Response(200, text="200,8,95.5,10.0"), "invalid coordinates"),
    ],
)
def test_google_csv_failures(response: httpx.Response, detail: str) -> None:
    provider = GoogleCsvProvider(key="k", transport=httpx.MockTransport(lambda request: response))
    result = provider.geocode(ADDRESS)

    assert not result.is_resolved
    assert result.coordinate is None
    assert result.error.error_type is GeocodeErrorType.PROVIDER_ERROR
    assert detail in str(result.error)


def test_http_status_in_error_context() -> None:
    provider = GoogleCsvProvider(
        key="k", transport=httpx.MockTransport(lambda request: httpx.Response(403))
    )
    result = provider.geocode(ADDRESS)

    assert result.error.context["status"] == 403
    assert result.error.context["package"] == "ryandata_geocode_utils"


def test_transport_errors_are_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = GoogleCsvProvider(key="k", transport=httpx.MockTransport(handler))
    result = provider.geocode(ADDRESS)

    assert result.error.error_type is GeocodeErrorType.PROVIDER_ERROR
    assert "connection refused" in str(result.error)


def test_invalid_json_is_provider_error() -> None:
    provider = GoogleGeocodingV3Provider(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")),
    )
    result = provider.geocode(ADDRESS)

    assert "invalid JSON" in str(result.error)


def test_json_body_decoded_from_bytes() -> None:
    payload = {**V3_PAYLOAD, "results": [{**V3_PAYLOAD["results"][0], "formatted_address": "Calle Peñasco 4, Bogotá"}]}
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    provider = GoogleGeocodingV3Provider(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, content=body, headers={"Content-Type": "application/json"})
        ),
    )
    result = provider.geocode(ADDRESS)

    assert result.is_resolved
    assert result.components["address"] == "Calle Peñasco 4, Bogotá"


def test_build_url_encodes_values() -> None:
    provider = GoogleCsvProvider(key="a&b")
    url = provider.build_url("12 Oak St #4, Tampa & Co")

    assert "q=12+Oak+St+%234%2C+Tampa+%26+Co" in url
    assert url.endswith("key=a%26b")
    provider.close()


def test_stats_count_requests_and_errors() -> None:
    responses = iter(["200,8,28.0792,-82.4735", "602,0,0,0"])
    provider = GoogleCsvProvider(
        key="k",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text=next(responses))),
    )
    provider.geocode(ADDRESS)
    provider.geocode("Nowhere")

    assert provider.stats == {"request_count": 2, "error_count": 1}
    provider.reset_stats()
    assert provider.stats == {"request_count": 0, "error_count": 0}


def test_providers_satisfy_protocol() -> None:
    for provider_class in (GoogleCsvProvider, GooglePlacemarkProvider, GoogleGeocodingV3Provider, YahooProvider):
        with provider_class() as provider:
            assert isinstance(provider, GeocodeProviderProtocol)
            assert provider.name == provider_class.profile.name


def test_profiles_lookup() -> None:
    assert get_profile(" Google ").pattern is not None
    assert get_profile("google-v3").pattern is None
    with pytest.raises(ValueError, match="Available services"):
        get_profile("mapquest")


def test_factory_creates_by_service_name() -> None:
    assert isinstance(ProviderFactory.create(), GoogleCsvProvider)
    assert isinstance(ProviderFactory.create("YAHOO", key="k"), YahooProvider)
    assert isinstance(ProviderFactory.create("google-json", longitude_first=True), GooglePlacemarkProvider)
    assert {"google", "google-json", "google-v3", "yahoo"} <= set(ProviderFactory.available_types())
    with pytest.raises(ValueError, match="Unknown provider type"):
        ProviderFactory.create("mapquest")
