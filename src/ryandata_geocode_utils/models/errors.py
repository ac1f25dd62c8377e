"""Geocode-specific error classes.

Failures inside the resolver and search services are not raised across
component boundaries. They are carried as ``RyanDataGeocodeError`` values on
result objects so batch callers can decide per record whether to skip or
abort. ``raise_for_error()`` on the results turns them back into exceptions.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic_core import PydanticCustomError

# Package identifier for error context
PACKAGE_NAME = "ryandata_geocode_utils"


class GeocodeErrorType(str, Enum):
    """Error taxonomy for geocoding and proximity operations."""

    EMPTY_ADDRESS = "empty_address"
    UNRESOLVED_CROSS_ENTITY_FIELD = "unresolved_cross_entity_field"
    NO_PROVIDER_CONFIGURED = "no_provider_configured"
    PROVIDER_ERROR = "provider_error"
    UNSUPPORTED_UNIT = "unsupported_unit"
    INVALID_QUERY_ORIGIN = "invalid_query_origin"
    INVALID_QUERY = "invalid_query"
    STORAGE_ERROR = "storage_error"


def _context(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"package": PACKAGE_NAME, **(extra or {})}


class RyanDataGeocodeError(PydanticCustomError):
    """Error value for ryandata_geocode_utils that stays compatible with Pydantic.

    Inherits from PydanticCustomError so it can be raised from validators and
    caught alongside other Pydantic errors, while carrying package
    identification in its context. Use the named constructors rather than
    instantiating directly.
    """

    @property
    def error_type(self) -> GeocodeErrorType:
        """The error category as an enum member."""
        return GeocodeErrorType(self.type)

    @classmethod
    def empty_address(cls, raw_input: Any) -> RyanDataGeocodeError:
        return cls(
            GeocodeErrorType.EMPTY_ADDRESS.value,
            "No usable address could be composed from the given data",
            _context({"raw_input": repr(raw_input)}),
        )

    @classmethod
    def unresolved_field(
        cls, field: str, entity: str, reason: str
    ) -> RyanDataGeocodeError:
        return cls(
            GeocodeErrorType.UNRESOLVED_CROSS_ENTITY_FIELD.value,
            "Could not fill {field} from {entity}: {reason}",
            _context({"field": field, "entity": entity, "reason": reason}),
        )

    @classmethod
    def no_provider_configured(cls, address: str, service: str) -> RyanDataGeocodeError:
        return cls(
            GeocodeErrorType.NO_PROVIDER_CONFIGURED.value,
            "Address not found in storage and no API key was provided for {service}",
            _context({"address": address, "service": service}),
        )

    @classmethod
    def provider_error(
        cls,
        address: str,
        detail: str,
        status: int | None = None,
    ) -> RyanDataGeocodeError:
        ctx: dict[str, Any] = {"address": address, "detail": detail}
        if status is not None:
            ctx["status"] = status
        return cls(
            GeocodeErrorType.PROVIDER_ERROR.value,
            "Geocoding provider failed: {detail}",
            _context(ctx),
        )

    @classmethod
    def unsupported_unit(cls, unit: Any) -> RyanDataGeocodeError:
        return cls(
            GeocodeErrorType.UNSUPPORTED_UNIT.value,
            "Unsupported distance unit {unit}, using kilometers",
            _context({"unit": repr(unit)}),
        )

    @classmethod
    def invalid_query_origin(
        cls, origin: Any, cause: Exception | None = None
    ) -> RyanDataGeocodeError:
        ctx: dict[str, Any] = {"origin": repr(origin)}
        if cause is not None:
            ctx["cause"] = str(cause)
        return cls(
            GeocodeErrorType.INVALID_QUERY_ORIGIN.value,
            "Origin is neither a coordinate pair nor a resolvable address",
            _context(ctx),
        )

    @classmethod
    def invalid_query(cls, detail: str) -> RyanDataGeocodeError:
        return cls(
            GeocodeErrorType.INVALID_QUERY.value,
            "Invalid proximity query: {detail}",
            _context({"detail": detail}),
        )

    @classmethod
    def storage_error(cls, operation: str, detail: str) -> RyanDataGeocodeError:
        return cls(
            GeocodeErrorType.STORAGE_ERROR.value,
            "Storage {operation} failed: {detail}",
            _context({"operation": operation, "detail": detail}),
        )


class RyanDataValidationError(Exception):
    """Exception that wraps pydantic.ValidationError with package identification.

    Raised by the model constructors in this package (coordinates, proximity
    queries) when callers opt into exceptions.
    """

    def __init__(self, validation_error: Exception, context: dict | None = None):
        """Initialize RyanDataValidationError.

        Args:
            validation_error: The pydantic.ValidationError to wrap.
            context: Optional additional context to include.
        """
        from pydantic import ValidationError as PydanticValidationError

        self.original_error = validation_error
        self.context = _context(context)

        if isinstance(validation_error, PydanticValidationError):
            self.errors_list = validation_error.errors()
            error_messages = "; ".join(e.get("msg", str(e)) for e in self.errors_list)
        else:
            self.errors_list = []
            error_messages = str(validation_error)

        super().__init__(error_messages)

    def errors(self) -> list:
        """Get the list of validation errors."""
        return self.errors_list

    def __repr__(self) -> str:
        return f"RyanDataValidationError({self.original_error!r}, context={self.context})"
