"""Field configuration models.

AddressFieldSpec says where each logical field comes from (source aliases)
and where it goes (storage column). AddressFormat turns resolved components
into one address line. CrossEntityFieldRule describes how to backfill a
component from a related record.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping, Sequence
from string import Template
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ryandata_geocode_utils.models.enums import ADDRESS_COMPONENTS, LogicalField

DEFAULT_ADDRESS_TEMPLATE = "${address1} ${address2}, ${city}, ${zip} ${state}, ${country}"

# (pattern, replacement) pairs applied in order after substitution
DEFAULT_NORMALIZATION_RULES: tuple[tuple[str, str], ...] = (
    (r"\s+", " "),  # whitespace runs
    (r"\s+,(?=.)", ","),  # "space + comma" before trailing content
    (r"\s*,(?:\s*,)+", ","),  # repeated commas
    (r"(?:,\s*)+$", ""),  # trailing commas
    (r"^(?:\s*,)+", ""),  # leading commas
)

DEFAULT_ALIASES: dict[LogicalField, tuple[str, ...]] = {
    LogicalField.ADDRESS1: ("addr", "address_1"),
    LogicalField.ADDRESS2: ("addr2", "address_2"),
    LogicalField.ZIP: ("zipcode", "zip_code", "postal_code"),
}


class FieldBinding(BaseModel):
    """Source aliases and storage column for one logical field."""

    model_config = ConfigDict(frozen=True)

    aliases: tuple[str, ...] = ()
    column: str | None = None


def _default_bindings() -> dict[LogicalField, FieldBinding]:
    bindings = {
        field: FieldBinding(aliases=DEFAULT_ALIASES.get(field, ()), column=field.value)
        for field in LogicalField
    }
    # Hashing is opt-in
    bindings[LogicalField.HASH] = FieldBinding(column=None)
    return bindings


class AddressFieldSpec(BaseModel):
    """Per-field alias precedence and schema presence.

    Example:
        >>> spec = AddressFieldSpec()
        >>> spec.candidates(LogicalField.ZIP)
        ('zip', 'zipcode', 'zip_code', 'postal_code')
        >>> spec.column(LogicalField.HASH) is None
        True
    """

    model_config = ConfigDict(frozen=True)

    bindings: dict[LogicalField, FieldBinding] = Field(default_factory=_default_bindings)

    def binding(self, field: LogicalField | str) -> FieldBinding:
        return self.bindings.get(LogicalField(field), FieldBinding())

    def candidates(self, field: LogicalField | str) -> tuple[str, ...]:
        """Source keys to try for a field: canonical name first, then aliases in order."""
        field = LogicalField(field)
        keys = [field.value]
        for alias in self.binding(field).aliases:
            if alias not in keys:
                keys.append(alias)
        return tuple(keys)

    def column(self, field: LogicalField | str) -> str | None:
        """Storage column for a field, or None when the schema lacks it."""
        return self.binding(field).column

    def has_column(self, field: LogicalField | str) -> bool:
        return bool(self.column(field))

    def bind_columns(self, columns: Collection[str]) -> AddressFieldSpec:
        """Drop every column the storage schema does not have.

        Args:
            columns: Column names present on the target schema.

        Returns:
            New AddressFieldSpec with missing columns set to None.
        """
        available = set(columns)
        bindings = {
            field: binding.model_copy(
                update={"column": binding.column if binding.column in available else None}
            )
            for field, binding in self.bindings.items()
        }
        return self.model_copy(update={"bindings": bindings})

    def with_field(
        self,
        field: LogicalField | str,
        *,
        aliases: Sequence[str] | None = None,
        column: str | None | bool = True,
    ) -> AddressFieldSpec:
        """Return a copy with one field rebound.

        Args:
            field: Logical field to change.
            aliases: New alias list. None keeps the current aliases.
            column: Column name, True to keep the current column, or
                False/None to mark the field absent.
        """
        field = LogicalField(field)
        current = self.binding(field)
        if column is True:
            new_column = current.column
        elif column is False:
            new_column = None
        else:
            new_column = column
        binding = FieldBinding(
            aliases=tuple(aliases) if aliases is not None else current.aliases,
            column=new_column,
        )
        return self.model_copy(update={"bindings": {**self.bindings, field: binding}})

    @classmethod
    def from_config(
        cls,
        columns: Mapping[str, str | bool | None] | Sequence[str] | None = None,
        aliases: Mapping[str, Sequence[str] | str] | None = None,
    ) -> AddressFieldSpec:
        """Build a spec from plain configuration values.

        Args:
            columns: Either a mapping of logical field to column name
                (False/None marks it absent, True uses the field name) or a
                sequence of logical fields whose column has the same name.
            aliases: Mapping of address component to one alias or a list of them.

        Returns:
            AddressFieldSpec overlaid on the defaults.
        """
        spec = cls()
        if columns is not None:
            if isinstance(columns, Mapping):
                items = list(columns.items())
            else:
                items = [(name, True) for name in columns]
            for name, column in items:
                field = LogicalField(name)
                spec = spec.with_field(field, column=field.value if column is True else column)
        for name, values in (aliases or {}).items():
            alias_list = [values] if isinstance(values, str) else list(values)
            spec = spec.with_field(name, aliases=alias_list)
        return spec


class AddressFormat(BaseModel):
    """Address template plus the clean-up rules applied after substitution."""

    model_config = ConfigDict(frozen=True)

    template: str = DEFAULT_ADDRESS_TEMPLATE
    rules: tuple[tuple[str, str], ...] = DEFAULT_NORMALIZATION_RULES

    @field_validator("template")
    @classmethod
    def _check_placeholders(cls, value: str) -> str:
        known = {field.value for field in ADDRESS_COMPONENTS}
        unknown = [name for name in Template(value).get_identifiers() if name not in known]
        if unknown:
            raise ValueError(f"Unknown address placeholders: {', '.join(sorted(unknown))}")
        return value

    @property
    def placeholders(self) -> tuple[LogicalField, ...]:
        """Address components referenced by the template, in template order."""
        return tuple(LogicalField(name) for name in Template(self.template).get_identifiers())

    def render(self, values: Mapping[str, str]) -> str:
        """Substitute component values and normalize the result."""
        text = Template(self.template).safe_substitute(values).strip()
        return self.normalize(text)

    def normalize(self, text: str) -> str:
        for pattern, replacement in self.rules:
            text = re.sub(pattern, replacement, text)
        return text.strip()


def underscore(name: str) -> str:
    """CamelCase entity name to snake_case (``PostalArea`` -> ``postal_area``)."""
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def classify(name: str) -> str:
    """snake_case field name to an entity name (``postal_area`` -> ``PostalArea``)."""
    return "".join(part.capitalize() for part in name.split("_") if part)


class CrossEntityFieldRule(BaseModel):
    """How to backfill one address component from a related record.

    ``entity`` may be a dotted path with one further hop, e.g.
    ``State.Country``: the State record referenced by ``state_id`` is read
    first, then the Country it references through ``country_id``.
    """

    model_config = ConfigDict(frozen=True)

    field: LogicalField
    entity: str
    reference_field: str | None = None
    lookup_field: str = "name"

    @field_validator("entity")
    @classmethod
    def _check_entity(cls, value: str) -> str:
        parts = value.split(".")
        if not value or len(parts) > 2 or not all(parts):
            raise ValueError(f"Entity must be 'Model' or 'Model.Related', got {value!r}")
        return value

    @property
    def path(self) -> tuple[str, ...]:
        return tuple(self.entity.split("."))

    @property
    def local_reference(self) -> str:
        """Field on the local record that holds the related record id."""
        return self.reference_field or f"{underscore(self.path[0])}_id"

    @property
    def hop_reference(self) -> str | None:
        """Field on the first related record that points at the second, if any."""
        if len(self.path) < 2:
            return None
        return f"{underscore(self.path[1])}_id"


def rules_from_config(config: Mapping[str, Any] | Sequence[Any] | None) -> list[CrossEntityFieldRule]:
    """Parse cross-entity rules from shorthand configuration.

    Accepted forms:
        ``["city"]`` -> City.name via ``city_id``
        ``{"city": "City", "country": "State.Country"}``
        ``{"city": {"entity": "Town", "reference_field": "town_ref"}}``
        ``[{"field": "city", "entity": "City"}]``

    Returns:
        List of CrossEntityFieldRule, in configuration order.
    """
    if not config:
        return []

    rules: list[CrossEntityFieldRule] = []
    items: list[tuple[str | None, Any]]
    if isinstance(config, Mapping):
        items = list(config.items())
    else:
        items = [(None, entry) for entry in config]

    for field, data in items:
        if isinstance(data, CrossEntityFieldRule):
            rules.append(data)
            continue
        if isinstance(data, str):
            if field is None:
                field, data = data, {"entity": classify(data)}
            else:
                data = {"entity": data}
        data = dict(data)
        data.setdefault("field", field)
        if "model" in data and "entity" not in data:
            data["entity"] = data.pop("model")
        if "referenceField" in data:
            data["reference_field"] = data.pop("referenceField")
        if not data.get("entity"):
            continue
        rules.append(CrossEntityFieldRule.model_validate(data))
    return rules
