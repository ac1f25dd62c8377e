from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ryandata_geocode_utils.storage.base import DEFAULT_COLUMNS, BaseRowStorage

if TYPE_CHECKING:
    import pandas as pd


class DataFrameStorage(BaseRowStorage):
    """Storage backed by a pandas DataFrame.

    The frame's columns are the schema. Missing values (NaN, None) are read as
    None so they follow the same NULL rules as the other adapters. Inserts
    replace ``self.frame`` with an extended copy.
    """

    def __init__(self, frame: pd.DataFrame | None = None) -> None:
        import pandas as pd

        self.frame = frame if frame is not None else pd.DataFrame(columns=list(DEFAULT_COLUMNS))

    def columns(self) -> set[str]:
        return {str(column) for column in self.frame.columns}

    def _iter_rows(self) -> Iterable[dict[str, Any]]:
        import pandas as pd

        for record in self.frame.to_dict(orient="records"):
            yield {
                str(key): None if not isinstance(value, (list, dict)) and pd.isna(value) else value
                for key, value in record.items()
            }

    def _append(self, row: dict[str, Any]) -> None:
        import pandas as pd

        if "id" in self.frame.columns and row.get("id") is None:
            ids = pd.to_numeric(self.frame["id"], errors="coerce").dropna()
            row["id"] = int(ids.max()) + 1 if len(ids) else 1
        addition = pd.DataFrame([row], columns=self.frame.columns)
        if self.frame.empty:
            self.frame = addition
        else:
            self.frame = pd.concat([self.frame, addition], ignore_index=True)
