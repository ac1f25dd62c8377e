"""JSON geocoding providers.

Structured services return standardised address components next to the
coordinate. Those components are reported on the GeocodeResult under their
logical field names so the resolver can write them back to the record.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx

from ryandata_geocode_utils.models import RyanDataGeocodeError
from ryandata_geocode_utils.providers.base import BaseGeocodeProvider
from ryandata_geocode_utils.providers.profiles import GOOGLE_JSON, GOOGLE_V3


def _dig(data: Any, *path: str | int) -> Any:
    """Follow a path of keys/indexes, returning None at the first gap."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(data, list) or len(data) <= step:
                return None
        elif not isinstance(data, Mapping) or step not in data:
            return None
        data = data[step]
    return data


class StructuredJsonProvider(BaseGeocodeProvider):
    """Base for providers whose responses are JSON documents."""

    def _parse(self, address: str, response: httpx.Response) -> tuple[Any, Any, dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise RyanDataGeocodeError.provider_error(address, f"invalid JSON: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise RyanDataGeocodeError.provider_error(address, "JSON payload is not an object")
        return self.parse_payload(address, payload)

    @abstractmethod
    def parse_payload(
        self, address: str, payload: Mapping[str, Any]
    ) -> tuple[Any, Any, dict[str, Any]]:
        """Extract (latitude, longitude, components) from a decoded payload."""
        ...


class GooglePlacemarkProvider(StructuredJsonProvider):
    """Legacy Google Maps JSON output (``Status`` / ``Placemark`` documents).

    ``Point.coordinates`` is read as latitude, longitude. Set
    ``longitude_first=True`` for services that send KML order (longitude,
    latitude, altitude).
    """

    profile = GOOGLE_JSON

    def __init__(self, *, longitude_first: bool = False, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.longitude_first = longitude_first

    def parse_payload(
        self, address: str, payload: Mapping[str, Any]
    ) -> tuple[Any, Any, dict[str, Any]]:
        status = _dig(payload, "Status", "code")
        if status != 200:
            raise RyanDataGeocodeError.provider_error(address, f"status {status}")

        placemark = _dig(payload, "Placemark", 0)
        coordinates = _dig(placemark, "Point", "coordinates")
        if not isinstance(coordinates, list) or len(coordinates) < 2:
            raise RyanDataGeocodeError.provider_error(address, "placemark has no coordinates")

        if self.longitude_first:
            longitude, latitude = coordinates[0], coordinates[1]
        else:
            latitude, longitude = coordinates[0], coordinates[1]

        country = _dig(placemark, "AddressDetails", "Country")
        area = _dig(country, "AdministrativeArea")
        locality = _dig(area, "SubAdministrativeArea", "Locality")
        components = {
            "address": _dig(placemark, "address"),
            "address1": _dig(locality, "Thoroughfare", "ThoroughfareName"),
            "city": _dig(locality, "LocalityName"),
            "state": _dig(area, "AdministrativeAreaName"),
            "zip": _dig(locality, "PostalCode", "PostalCodeNumber"),
            "country": _dig(country, "CountryNameCode"),
        }
        return latitude, longitude, components


# Google address component type -> logical field
V3_COMPONENT_TYPES: dict[str, str] = {
    "locality": "city",
    "sublocality": "city",
    "administrative_area_level_1": "state",
    "postal_code": "zip",
    "country": "country",
}


class GoogleGeocodingV3Provider(StructuredJsonProvider):
    """Google Geocoding API v3 (``status`` / ``results`` documents)."""

    profile = GOOGLE_V3

    def parse_payload(
        self, address: str, payload: Mapping[str, Any]
    ) -> tuple[Any, Any, dict[str, Any]]:
        status = payload.get("status")
        if status != "OK" or not payload.get("results"):
            detail = f"status {status}"
            if payload.get("error_message"):
                detail += f" - {payload['error_message']}"
            raise RyanDataGeocodeError.provider_error(address, detail)

        result = payload["results"][0]
        location = _dig(result, "geometry", "location")
        if not isinstance(location, Mapping) or "lat" not in location or "lng" not in location:
            raise RyanDataGeocodeError.provider_error(address, "result has no location")

        components: dict[str, Any] = {"address": result.get("formatted_address")}
        street_number = route = None
        for component in result.get("address_components") or []:
            types = component.get("types") or []
            value = component.get("short_name") if "country" in types else component.get("long_name")
            if "street_number" in types:
                street_number = value
            elif "route" in types:
                route = value
            else:
                for component_type, field in V3_COMPONENT_TYPES.items():
                    if component_type in types:
                        components.setdefault(field, value)
                        break
        street = " ".join(part for part in (street_number, route) if part)
        if street:
            components["address1"] = street
        return location["lat"], location["lng"], components
