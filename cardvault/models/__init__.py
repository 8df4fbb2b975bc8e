"""Domain models for the card import pipeline."""

from .column_mapping import ColumnMapping, MappingError, coerce_mappings, field_lookup
from .import_result import CardRecord, ImportResult, NulledReference, RowFailure
from .parsed_sheet import ParsedSheet
from .reference import ReferenceSnapshot
from .template_columns import (
    SKIP_FIELD,
    TEMPLATE_COLUMNS,
    FieldKind,
    ReferenceType,
    TemplateColumn,
)
from .validation import MissingReferenceReport, PreviewRow, ValidationError, ValidationResult

__all__ = [
    # Template / field definitions
    "SKIP_FIELD",
    "TEMPLATE_COLUMNS",
    "FieldKind",
    "ReferenceType",
    "TemplateColumn",
    # Pipeline models
    "ParsedSheet",
    "ColumnMapping",
    "MappingError",
    "coerce_mappings",
    "field_lookup",
    "ReferenceSnapshot",
    "ValidationError",
    "MissingReferenceReport",
    "PreviewRow",
    "ValidationResult",
    "CardRecord",
    "ImportResult",
    "NulledReference",
    "RowFailure",
]
