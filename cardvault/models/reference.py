from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .template_columns import ReferenceType

"""ReferenceSnapshot: one read of every reference vocabulary table.

Names are compared case-insensitively; the snapshot stores lower-cased
name -> id. It is taken once per validate/import call and is not locked
against concurrent admin edits.
"""

__all__ = [
    "ReferenceSnapshot",
]


@dataclass(frozen=True)
class ReferenceSnapshot:
    entries: dict[ReferenceType, dict[str, Any]] = field(default_factory=dict)

    @staticmethod
    def from_rows(rows_by_type: Mapping[ReferenceType, Iterable[Mapping[str, Any]]]) -> ReferenceSnapshot:
        """Build from ``{ReferenceType: [{"id": .., "name": ..}, ...]}``.

        When two stored names collide case-insensitively the first one wins.
        """
        entries: dict[ReferenceType, dict[str, Any]] = {}
        for ref_type in ReferenceType:
            lookup: dict[str, Any] = {}
            for row in rows_by_type.get(ref_type, ()):
                name = row.get("name")
                if name is None:
                    continue
                lookup.setdefault(str(name).lower(), row.get("id"))
            entries[ref_type] = lookup
        return ReferenceSnapshot(entries=entries)

    def contains(self, ref_type: ReferenceType, name: str) -> bool:
        return name.lower() in self.entries.get(ref_type, {})

    def resolve(self, ref_type: ReferenceType, name: str) -> Any | None:
        return self.entries.get(ref_type, {}).get(name.lower())
