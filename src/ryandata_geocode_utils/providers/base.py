from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from string import Template
from typing import Any, ClassVar
from urllib.parse import quote_plus

import httpx

from ryandata_geocode_utils.models import (
    Coordinate,
    GeocodeResult,
    GeocodeSource,
    RyanDataGeocodeError,
)
from ryandata_geocode_utils.providers.profiles import ProviderProfile

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class BaseGeocodeProvider(ABC):
    """Abstract base class for remote geocoding providers.

    Handles URL construction, the HTTP request, error handling, logging and
    statistics. Subclasses only parse the response body.
    """

    profile: ClassVar[ProviderProfile]

    def __init__(
        self,
        *,
        key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        profile: ProviderProfile | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            key: API key substituted for ``${key}`` in the request URL.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
            profile: Override the class-level service profile.
        """
        if profile is not None:
            self.profile = profile
        self.key = key
        self._timeout = timeout
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._request_count = 0
        self._error_count = 0

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def address_format(self) -> str:
        return self.profile.format

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> BaseGeocodeProvider:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def build_url(self, address: str) -> str:
        """Fill the profile URL template with the URL-encoded address and key."""
        values = {"address": quote_plus(address), "key": quote_plus(self.key or "")}
        return Template(self.profile.url).safe_substitute(values)

    def _fetch(self, address: str) -> httpx.Response:
        url = self.build_url(address)
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            raise RyanDataGeocodeError.provider_error(address, str(exc)) from exc

        if response.status_code >= 400:
            raise RyanDataGeocodeError.provider_error(
                address,
                f"HTTP {response.status_code}",
                status=response.status_code,
            )
        if not response.text.strip():
            raise RyanDataGeocodeError.provider_error(address, "empty response")
        return response

    @abstractmethod
    def _parse(self, address: str, response: httpx.Response) -> tuple[Any, Any, dict[str, Any]]:
        """Extract coordinates from a successful response.

        Args:
            address: The address that was queried.
            response: Non-empty HTTP response.

        Returns:
            (latitude, longitude, components). Components are standardised
            address fields keyed by logical field name; may be empty.

        Raises:
            RyanDataGeocodeError: If the body carries no usable result.
        """
        ...

    def geocode(self, address: str) -> GeocodeResult:
        """Resolve an address through the remote service.

        Args:
            address: Canonical address string.

        Returns:
            GeocodeResult with the coordinate, or with ``error`` set.
        """
        self._request_count += 1

        try:
            response = self._fetch(address)
            latitude, longitude, components = self._parse(address, response)
            coordinate = Coordinate(latitude=float(latitude), longitude=float(longitude))
        except RyanDataGeocodeError as e:
            return self._failure(address, e)
        except (TypeError, ValueError) as e:
            return self._failure(
                address, RyanDataGeocodeError.provider_error(address, f"invalid coordinates: {e}")
            )

        logger.debug("Geocoded %s via %s: %s", address[:50], self.name, coordinate.as_tuple())
        return GeocodeResult(
            raw_input=address,
            address=address,
            coordinate=coordinate,
            source=GeocodeSource.PROVIDER,
            components={k: v for k, v in components.items() if v not in (None, "")},
        )

    def _failure(self, address: str, error: RyanDataGeocodeError) -> GeocodeResult:
        self._error_count += 1
        logger.warning("Geocoding failed via %s: %s - %s", self.name, address[:50], str(error))
        return GeocodeResult(raw_input=address, address=address, error=error)

    @property
    def stats(self) -> dict[str, int]:
        """Get request statistics.

        Returns:
            Dict with request_count and error_count.
        """
        return {
            "request_count": self._request_count,
            "error_count": self._error_count,
        }

    def reset_stats(self) -> None:
        self._request_count = 0
        self._error_count = 0
