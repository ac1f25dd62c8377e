"""Geocoding service profiles.

A profile bundles everything that differs between services: the request URL
template, the address format used to build the query, and how the response is
read. Regex profiles carry a pattern with capture groups; JSON profiles
are read by their provider class.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ryandata_geocode_utils.models.fields import DEFAULT_ADDRESS_TEMPLATE


@dataclass(frozen=True)
class ProviderProfile:
    """Static description of one geocoding service."""

    name: str
    url: str
    format: str = DEFAULT_ADDRESS_TEMPLATE
    # Regex profiles: pattern plus capture group index per field
    pattern: str | None = None
    matches: dict[str, int] = field(default_factory=lambda: {"latitude": 1, "longitude": 2})


GOOGLE = ProviderProfile(
    name="google",
    url="http://maps.google.com/maps/geo?q=${address}&output=csv&key=${key}",
    pattern=r"200,[^,]+,([^,]+),([^,\s]+)",
)

GOOGLE_JSON = ProviderProfile(
    name="google-json",
    url="http://maps.google.com/maps/geo?q=${address}&output=json&key=${key}",
)

GOOGLE_V3 = ProviderProfile(
    name="google-v3",
    url="https://maps.googleapis.com/maps/api/geocode/json?address=${address}&key=${key}",
)

YAHOO = ProviderProfile(
    name="yahoo",
    url="http://api.local.yahoo.com/MapsService/V1/geocode?appid=${key}&location=${address}",
    pattern=r"<Latitude>(.*?)</Latitude><Longitude>(.*?)</Longitude>",
)

PROFILES: dict[str, ProviderProfile] = {
    profile.name: profile for profile in (GOOGLE, GOOGLE_JSON, GOOGLE_V3, YAHOO)
}


def get_profile(name: str) -> ProviderProfile:
    """Look up a built-in profile by name.

    Raises:
        ValueError: If no profile has that name.
    """
    key = name.strip().lower()
    if key not in PROFILES:
        available = ", ".join(sorted(PROFILES))
        raise ValueError(f"Unknown geocoding service: {name}. Available services: {available}")
    return PROFILES[key]
