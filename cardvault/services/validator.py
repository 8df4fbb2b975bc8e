from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..models.column_mapping import ColumnMapping, field_lookup
from ..models.reference import ReferenceSnapshot
from ..models.template_columns import (
    REQUIRED_VALUE_MESSAGES,
    ReferenceType,
    column_for_field,
    required_fields,
)
from ..models.validation import (
    MissingReferenceReport,
    PreviewRow,
    ValidationError,
    ValidationResult,
)

"""Import validation.

validate_rows is a pure function of (rows, mappings, reference snapshot):

1. every required template column must be mapped; otherwise the row-0
   errors are returned immediately with an empty preview
2. per row: required values (playerName, season, cardNumber) must be
   non-empty after trimming; each miss is one ValidationError
3. per row: non-empty reference names absent from the snapshot go into the
   missing-reference report (not the error list)
4. every row gets a preview entry, errors or not

valid is True iff there are no errors and the missing report is empty.
"""

__all__ = [
    "FIRST_DATA_ROW",
    "resolve_row",
    "validate_rows",
]

# header is spreadsheet row 1, so data index 0 is row 2
FIRST_DATA_ROW = 2


def resolve_row(row: dict[str, str], lookup: dict[str, str]) -> dict[str, str]:
    """Read each mapped field's trimmed cell value ("" when absent)."""
    values: dict[str, str] = {}
    for field, excel_column in lookup.items():
        raw = row.get(excel_column)
        values[field] = raw.strip() if isinstance(raw, str) else ""
    return values


def _mapping_errors(lookup: dict[str, str]) -> list[ValidationError]:
    errors = []
    for field in required_fields():
        if field not in lookup:
            header = column_for_field(field).header  # type: ignore[union-attr]
            errors.append(
                ValidationError(row=0, field=field, message=f'Required field "{header}" is not mapped')
            )
    return errors


def validate_rows(
    rows: Sequence[dict[str, str]],
    mappings: Iterable[ColumnMapping],
    snapshot: ReferenceSnapshot,
) -> ValidationResult:
    lookup = field_lookup(mappings)
    missing = MissingReferenceReport()

    errors = _mapping_errors(lookup)
    if errors:
        return ValidationResult(valid=False, errors=errors, missing_data=missing, preview=[])

    preview: list[PreviewRow] = []
    for index, row in enumerate(rows):
        row_number = index + FIRST_DATA_ROW
        values = resolve_row(row, lookup)

        for field, message in REQUIRED_VALUE_MESSAGES.items():
            if not values.get(field):
                errors.append(ValidationError(row=row_number, field=field, message=message))

        for ref_type in ReferenceType:
            name = values.get(ref_type.field)
            if name and not snapshot.contains(ref_type, name):
                missing.add(ref_type, name)

        preview.append(PreviewRow(row_number=row_number, values=values))

    return ValidationResult(
        valid=not errors and missing.is_empty(),
        errors=errors,
        missing_data=missing,
        preview=preview,
    )
