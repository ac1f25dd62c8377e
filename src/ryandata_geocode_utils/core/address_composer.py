"""Canonical address composition.

This module turns heterogeneous address records (aliased keys, a street line
passed as ``address``, integer ZIP codes) into the single address string used
both as the provider query and as the storage cache key.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ryandata_geocode_utils.models.enums import LogicalField
from ryandata_geocode_utils.models.fields import AddressFieldSpec, AddressFormat

logger = logging.getLogger(__name__)


def _clean_value(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class AddressComposer:
    """Builds canonical address strings from structured address data.

    All methods are stateless and can be used without instantiation via the
    module-level singleton.

    Example:
        >>> composer = get_composer()
        >>> composer.compose(
        ...     AddressFieldSpec(),
        ...     AddressFormat(),
        ...     {"address1": "1209 La Brad Lane", "city": "Tampa", "state": "FL"},
        ... )
        '1209 La Brad Lane, Tampa, FL'
    """

    @staticmethod
    def promote_street_line(address: Mapping[str, Any]) -> dict[str, Any]:
        """Treat a bare ``address`` value as the street line.

        When ``address`` is set but ``address1`` is not, the caller passed a
        street line under the generic name rather than a full address.

        Args:
            address: Structured address data.

        Returns:
            Copy of the data with ``address`` moved to ``address1`` if needed.
        """
        data = dict(address)
        if _clean_value(data.get("address")) and not _clean_value(data.get("address1")):
            data["address1"] = data.pop("address")
        return data

    @staticmethod
    def resolve_component(
        field_spec: AddressFieldSpec,
        field: LogicalField,
        address: Mapping[str, Any],
    ) -> str:
        """Pick the value of one address component.

        The canonical field name is tried first, then each alias in configured
        order. The first non-empty value wins and its commas are replaced by
        spaces so they cannot break the format's separators.

        Returns:
            Component value, or an empty string if none of the keys has one.
        """
        for key in field_spec.candidates(field):
            value = _clean_value(address.get(key))
            if value:
                return value.replace(",", " ")
        return ""

    @classmethod
    def resolve_components(
        cls,
        field_spec: AddressFieldSpec,
        address_format: AddressFormat,
        address: Mapping[str, Any],
    ) -> dict[str, str]:
        """Resolve every placeholder of the format from the address data."""
        data = cls.promote_street_line(address)
        return {
            field.value: cls.resolve_component(field_spec, field, data)
            for field in address_format.placeholders
        }

    @classmethod
    def compose(
        cls,
        field_spec: AddressFieldSpec,
        address_format: AddressFormat,
        address: Mapping[str, Any] | str | None,
    ) -> str | None:
        """Compose the canonical address string.

        Args:
            field_spec: Alias configuration for the address components.
            address_format: Template and normalization rules.
            address: Structured address data, or an already complete address
                string which is returned unchanged.

        Returns:
            Canonical address, or None when no component has a value.
        """
        if address is None:
            return None
        if isinstance(address, str):
            return address

        components = cls.resolve_components(field_spec, address_format, address)
        if not any(components.values()):
            return None

        composed = address_format.render(components)
        logger.debug("Composed address: %s", composed[:80])
        return composed or None


# Module-level singleton for convenience
_composer: AddressComposer | None = None


def get_composer() -> AddressComposer:
    """Get the singleton AddressComposer instance."""
    global _composer
    if _composer is None:
        _composer = AddressComposer()
    return _composer


def compose_address(
    address: Mapping[str, Any] | str | None,
    field_spec: AddressFieldSpec | None = None,
    address_format: AddressFormat | None = None,
) -> str | None:
    """Compose an address with the default field spec and format."""
    return AddressComposer.compose(
        field_spec or AddressFieldSpec(),
        address_format or AddressFormat(),
        address,
    )
