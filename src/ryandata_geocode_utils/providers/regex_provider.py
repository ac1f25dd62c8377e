from __future__ import annotations

import re
from typing import Any

import httpx

from ryandata_geocode_utils.models import RyanDataGeocodeError
from ryandata_geocode_utils.providers.base import BaseGeocodeProvider
from ryandata_geocode_utils.providers.profiles import GOOGLE, YAHOO


class RegexGeocodeProvider(BaseGeocodeProvider):
    """Provider for plain-text responses read with a regular expression.

    The profile's ``matches`` maps ``latitude`` and ``longitude`` to capture
    group indexes of ``pattern``. Only the first match is used.
    """

    def _parse(self, address: str, response: httpx.Response) -> tuple[Any, Any, dict[str, Any]]:
        pattern = self.profile.pattern
        if not pattern:
            raise RyanDataGeocodeError.provider_error(address, f"{self.name} has no pattern")

        match = re.search(pattern, response.text, re.DOTALL)
        if match is None:
            raise RyanDataGeocodeError.provider_error(address, "no coordinates in response")

        groups = self.profile.matches
        return match.group(groups["latitude"]), match.group(groups["longitude"]), {}


class GoogleCsvProvider(RegexGeocodeProvider):
    """Legacy Google Maps CSV output: ``200,accuracy,latitude,longitude``."""

    profile = GOOGLE


class YahooProvider(RegexGeocodeProvider):
    """Yahoo Maps XML geocoder."""

    profile = YAHOO
