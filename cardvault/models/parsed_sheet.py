from __future__ import annotations

from dataclasses import dataclass, field

"""ParsedSheet model: header row + string-keyed row records of an upload.

Built fresh per request from the uploaded workbook bytes; never persisted.
"""

__all__ = [
    "ParsedSheet",
]


@dataclass(frozen=True)
class ParsedSheet:
    """First sheet of an uploaded workbook.

    headers keeps the uploaded order verbatim; each row maps every header
    to its (stringified) cell value.
    """
    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        """Data rows only (header row excluded)."""
        return len(self.rows)
