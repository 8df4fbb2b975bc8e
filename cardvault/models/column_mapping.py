from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .template_columns import SKIP_FIELD, column_for_field

"""ColumnMapping model: uploaded column -> canonical card field."""

__all__ = [
    "ColumnMapping",
    "MappingError",
    "coerce_mappings",
    "field_lookup",
]


class MappingError(ValueError):
    """Raised when a submitted mapping is malformed or names an unknown field."""


@dataclass(frozen=True)
class ColumnMapping:
    excel_column: str
    field: str  # canonical field or SKIP_FIELD

    @property
    def is_skip(self) -> bool:
        return self.field == SKIP_FIELD

    def to_dict(self) -> dict[str, str]:
        return {"excelColumn": self.excel_column, "canonicalField": self.field}

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> ColumnMapping:
        """Build from the wire form; accepts the older ``dbField`` key too."""
        if not isinstance(data, Mapping):
            raise MappingError(f"mapping entry must be an object, got {type(data).__name__}")
        excel_column = data.get("excelColumn")
        field = data.get("canonicalField", data.get("dbField"))
        if not isinstance(excel_column, str) or not isinstance(field, str):
            raise MappingError(f"mapping entry needs excelColumn and canonicalField: {dict(data)}")
        if field != SKIP_FIELD and column_for_field(field) is None:
            raise MappingError(f"unknown canonical field '{field}' for column '{excel_column}'")
        return ColumnMapping(excel_column=excel_column, field=field)


def coerce_mappings(mappings: Iterable[ColumnMapping | Mapping[str, Any]]) -> list[ColumnMapping]:
    """Normalize mixed ColumnMapping / dict input, one entry per excel column (last wins)."""
    by_column: dict[str, ColumnMapping] = {}
    for m in mappings:
        cm = m if isinstance(m, ColumnMapping) else ColumnMapping.from_dict(m)
        if not cm.is_skip and column_for_field(cm.field) is None:
            raise MappingError(f"unknown canonical field '{cm.field}' for column '{cm.excel_column}'")
        by_column[cm.excel_column] = cm
    return list(by_column.values())


def field_lookup(mappings: Iterable[ColumnMapping]) -> dict[str, str]:
    """canonical field -> excel column, skips dropped, in mapping order.

    If two columns target the same field the later one wins.
    """
    lookup: dict[str, str] = {}
    for m in mappings:
        if m.is_skip:
            continue
        lookup[m.field] = m.excel_column
    return lookup
