"""Remote geocoding providers."""

from __future__ import annotations

from ryandata_geocode_utils.providers.base import DEFAULT_TIMEOUT, BaseGeocodeProvider
from ryandata_geocode_utils.providers.factory import ProviderFactory
from ryandata_geocode_utils.providers.json_provider import (
    GoogleGeocodingV3Provider,
    GooglePlacemarkProvider,
    StructuredJsonProvider,
)
from ryandata_geocode_utils.providers.profiles import PROFILES, ProviderProfile, get_profile
from ryandata_geocode_utils.providers.regex_provider import (
    GoogleCsvProvider,
    RegexGeocodeProvider,
    YahooProvider,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "BaseGeocodeProvider",
    "ProviderFactory",
    "ProviderProfile",
    "PROFILES",
    "get_profile",
    "RegexGeocodeProvider",
    "GoogleCsvProvider",
    "YahooProvider",
    "StructuredJsonProvider",
    "GooglePlacemarkProvider",
    "GoogleGeocodingV3Provider",
]
