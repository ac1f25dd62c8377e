from __future__ import annotations

from typing import Any, ClassVar

from ryandata_geocode_utils.core.factory import PluginFactory
from ryandata_geocode_utils.protocols import GeocodeProviderProtocol


class ProviderFactory(PluginFactory[GeocodeProviderProtocol]):
    """Factory for creating geocoding providers by service name.

    Example:
        >>> provider = ProviderFactory.create("google", key="my-key")

        # Register a custom provider
        >>> ProviderFactory.register("osm", NominatimProvider)
        >>> provider = ProviderFactory.create("osm")
    """

    _registry: ClassVar[dict[str, type[GeocodeProviderProtocol]]] = {}
    _default_type: ClassVar[str] = "google"
    _entity_name: ClassVar[str] = "provider"

    @classmethod
    def _ensure_defaults_registered(cls) -> None:
        """Ensure built-in providers are registered."""
        if "google" in cls._registry:
            return

        from ryandata_geocode_utils.providers.json_provider import (
            GoogleGeocodingV3Provider,
            GooglePlacemarkProvider,
        )
        from ryandata_geocode_utils.providers.regex_provider import (
            GoogleCsvProvider,
            YahooProvider,
        )

        for impl in (GoogleCsvProvider, GooglePlacemarkProvider, GoogleGeocodingV3Provider, YahooProvider):
            cls._registry.setdefault(impl.profile.name, impl)

    @classmethod
    def create(  # type: ignore[override]
        cls,
        service: str | None = None,
        **kwargs: Any,
    ) -> GeocodeProviderProtocol:
        """Create a provider instance.

        Args:
            service: Service name. Defaults to "google".
            **kwargs: Provider constructor arguments (key, timeout, transport).

        Raises:
            ValueError: If the service is not registered.
        """
        return super().create(service, **kwargs)
