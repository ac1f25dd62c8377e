"""Geocoding configuration.

Settings are an immutable snapshot, created once per storage/entity type and
passed to the resolver and search services. Service, key, timeout and hash
algorithm default to environment variables:

    RYANDATA_GEOCODE_SERVICE   provider profile name (default: google)
    RYANDATA_GEOCODE_KEY       provider API key
    RYANDATA_GEOCODE_TIMEOUT   request timeout in seconds (default: 10)
    RYANDATA_GEOCODE_HASH      hashlib algorithm for address hashes (default: sha1)
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import httpx

from ryandata_geocode_utils.models import (
    AddressFieldSpec,
    AddressFormat,
    CrossEntityFieldRule,
    rules_from_config,
)
from ryandata_geocode_utils.providers.factory import ProviderFactory
from ryandata_geocode_utils.providers.profiles import PROFILES

if TYPE_CHECKING:
    from ryandata_geocode_utils.protocols import GeocodeProviderProtocol, GeocodeStorageProtocol


def _env_float(name: str, default: str) -> float:
    value = os.getenv(name) or default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class GeocodeSettings:
    """Configuration for geocoding one kind of record."""

    service: str = field(default_factory=lambda: os.getenv("RYANDATA_GEOCODE_SERVICE") or "google")
    key: str | None = field(default_factory=lambda: os.getenv("RYANDATA_GEOCODE_KEY") or None)
    timeout: float = field(default_factory=lambda: _env_float("RYANDATA_GEOCODE_TIMEOUT", "10"))
    hash_algorithm: str = field(default_factory=lambda: os.getenv("RYANDATA_GEOCODE_HASH") or "sha1")
    field_spec: AddressFieldSpec = field(default_factory=AddressFieldSpec)
    rules: tuple[CrossEntityFieldRule, ...] = ()
    # None means the service profile's format
    address_format: AddressFormat | None = None
    # Extra provider constructor arguments, e.g. {"longitude_first": True}
    provider_options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        service = self.service.strip().lower()
        if not ProviderFactory.is_registered(service):
            available = ", ".join(ProviderFactory.available_types())
            raise ValueError(f"Unknown geocoding service: {self.service}. Available services: {available}")
        if self.hash_algorithm.lower() not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {self.hash_algorithm}")
        object.__setattr__(self, "service", service)
        object.__setattr__(self, "rules", tuple(self.rules))

    @property
    def format(self) -> AddressFormat:
        """Address format used to compose queries and cache keys."""
        if self.address_format is not None:
            return self.address_format
        profile = PROFILES.get(self.service)
        if profile is None:
            return AddressFormat()
        return AddressFormat(template=profile.format)

    @property
    def has_credentials(self) -> bool:
        return bool(self.key)

    def hash_address(self, address: str) -> str:
        """Hex digest of a canonical address."""
        return hashlib.new(self.hash_algorithm.lower(), address.encode("utf-8")).hexdigest()

    def merged(self, **overrides: Any) -> GeocodeSettings:
        """New snapshot with some values replaced."""
        return replace(self, **overrides)

    def create_provider(
        self, transport: httpx.BaseTransport | None = None
    ) -> GeocodeProviderProtocol:
        """Instantiate the configured provider."""
        return ProviderFactory.create(
            self.service,
            key=self.key,
            timeout=self.timeout,
            transport=transport,
            **dict(self.provider_options),
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> GeocodeSettings:
        """Build settings from a plain configuration mapping.

        Keys:
            service, key, timeout, hash_algorithm: as the fields.
            columns: logical field -> storage column (see AddressFieldSpec.from_config).
            aliases: address component -> alias or list of aliases.
            related: cross-entity rules (see rules_from_config).
            format: address template string.
            provider_options: extra provider arguments.
        """
        values: dict[str, Any] = {}
        for name in ("service", "key", "timeout", "hash_algorithm", "provider_options"):
            if config.get(name) is not None:
                values[name] = config[name]
        if "timeout" in values:
            values["timeout"] = float(values["timeout"])
        if config.get("columns") is not None or config.get("aliases") is not None:
            values["field_spec"] = AddressFieldSpec.from_config(
                config.get("columns"), config.get("aliases")
            )
        if config.get("related"):
            values["rules"] = tuple(rules_from_config(config["related"]))
        if config.get("format"):
            values["address_format"] = AddressFormat(template=config["format"])
        return cls(**values)


def settings_for_storage(
    settings: GeocodeSettings, storage: GeocodeStorageProtocol
) -> GeocodeSettings:
    """Bind the settings' field spec to the columns a storage actually has."""
    return settings.merged(field_spec=settings.field_spec.bind_columns(storage.columns()))
