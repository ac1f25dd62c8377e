from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class MappingRelatedLookup:
    """Related-record lookup over nested mappings.

    Data is keyed entity -> record id -> record::

        MappingRelatedLookup({"City": {7: {"name": "Tampa"}}})

    Integer and string ids are treated as the same record.
    """

    def __init__(self, data: Mapping[str, Mapping[Any, Mapping[str, Any]]] | None = None) -> None:
        self._data: dict[str, dict[Any, Mapping[str, Any]]] = {
            entity: dict(records) for entity, records in (data or {}).items()
        }

    def add(self, entity: str, record_id: Any, record: Mapping[str, Any]) -> None:
        self._data.setdefault(entity, {})[record_id] = record

    def lookup(self, entity: str, record_id: Any, field: str) -> Any:
        records = self._data.get(entity, {})
        record = records.get(record_id)
        if record is None:
            record = records.get(str(record_id))
        if record is None and isinstance(record_id, str) and record_id.isdigit():
            record = records.get(int(record_id))
        if record is None:
            return None
        return record.get(field)
