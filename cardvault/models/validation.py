from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .template_columns import ReferenceType

"""Validation result models.

ValidationError.row: 0 for file-level (mapping) errors, otherwise the
spreadsheet row number (data index + 2, header is row 1).
"""

__all__ = [
    "ValidationError",
    "MissingReferenceReport",
    "PreviewRow",
    "ValidationResult",
]


@dataclass(frozen=True)
class ValidationError:
    row: int
    field: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "field": self.field, "message": self.message}


@dataclass
class MissingReferenceReport:
    """Distinct upload names with no vocabulary entry, per reference type.

    Names keep the spelling first seen; duplicates are detected
    case-insensitively, matching the vocabulary comparison.
    """
    names: dict[ReferenceType, list[str]] = field(
        default_factory=lambda: {t: [] for t in ReferenceType}
    )

    def add(self, ref_type: ReferenceType, name: str) -> None:
        bucket = self.names.setdefault(ref_type, [])
        lowered = name.lower()
        if any(existing.lower() == lowered for existing in bucket):
            return
        bucket.append(name)

    def get(self, ref_type: ReferenceType) -> list[str]:
        return self.names.get(ref_type, [])

    def is_empty(self) -> bool:
        return all(not v for v in self.names.values())

    def total(self) -> int:
        return sum(len(v) for v in self.names.values())

    def to_dict(self) -> dict[str, list[str]]:
        return {t.report_key: list(self.get(t)) for t in ReferenceType}


@dataclass(frozen=True)
class PreviewRow:
    """Resolved-but-unvalidated field values for one spreadsheet row."""
    row_number: int
    values: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return {"rowNumber": self.row_number, **self.values}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[ValidationError]
    missing_data: MissingReferenceReport
    preview: list[PreviewRow]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "missingData": self.missing_data.to_dict(),
            "preview": [p.to_dict() for p in self.preview],
        }
