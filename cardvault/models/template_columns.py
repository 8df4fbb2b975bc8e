from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Canonical card fields and reference vocabulary types.

TEMPLATE_COLUMNS is the single source for the import template header row,
the auto-matcher candidates and the card column names used on insert.
Declaration order matters: the matcher picks the first applicable column.
"""

__all__ = [
    "ReferenceType",
    "FieldKind",
    "TemplateColumn",
    "TEMPLATE_COLUMNS",
    "SKIP_FIELD",
    "REQUIRED_VALUE_MESSAGES",
    "column_for_field",
    "required_fields",
]

SKIP_FIELD = "skip"


class ReferenceType(Enum):
    """Admin-curated lookup list a card points to by foreign key.

    value: (table name, canonical field, missing-report key)
    """
    BRAND = ("brands", "brandId", "brands")
    SERIES = ("series", "seriesId", "series")
    INSERT = ("inserts", "insertId", "inserts")
    PARALLEL = ("parallels", "parallelId", "parallels")
    TEAM = ("teams", "teamId", "teams")
    AUTOGRAPH_TYPE = ("autograph_types", "autographTypeId", "autographTypes")

    @property
    def table(self) -> str:
        return self.value[0]

    @property
    def field(self) -> str:
        return self.value[1]

    @property
    def report_key(self) -> str:
        return self.value[2]


class FieldKind(Enum):
    TEXT = "text"
    REFERENCE = "reference"
    FLAG = "flag"
    INTEGER = "integer"


@dataclass(frozen=True)
class TemplateColumn:
    """One canonical card attribute as it appears in the import template."""
    header: str  # display header written to the template
    field: str  # canonical field identifier
    required: bool
    db_column: str  # cards table column
    kind: FieldKind = FieldKind.TEXT
    reference: ReferenceType | None = None
    example: str | None = None


TEMPLATE_COLUMNS: tuple[TemplateColumn, ...] = (
    TemplateColumn("Player Name", "playerName", True, "player_name", example="Michael Jordan"),
    TemplateColumn("Team", "teamId", False, "team_id", FieldKind.REFERENCE, ReferenceType.TEAM, "Chicago Bulls"),
    TemplateColumn("Brand", "brandId", False, "brand_id", FieldKind.REFERENCE, ReferenceType.BRAND, "Panini"),
    TemplateColumn("Series", "seriesId", False, "series_id", FieldKind.REFERENCE, ReferenceType.SERIES, "Prizm"),
    TemplateColumn("Insert", "insertId", False, "insert_id", FieldKind.REFERENCE, ReferenceType.INSERT, "Silver"),
    TemplateColumn("Parallel", "parallelId", False, "parallel_id", FieldKind.REFERENCE, ReferenceType.PARALLEL, "Rookie"),
    TemplateColumn("Memorabilia", "memorabilia", False, "memorabilia", example="Jersey Patch"),
    TemplateColumn("Season / Year", "season", True, "season", example="2012-13"),
    TemplateColumn("Card Number", "cardNumber", True, "card_number", example="147"),
    TemplateColumn("Autograph", "autograph", False, "autograph", FieldKind.FLAG, example="Yes"),
    TemplateColumn(
        "Type of Autograph", "autographTypeId", False, "autograph_type_id",
        FieldKind.REFERENCE, ReferenceType.AUTOGRAPH_TYPE, "On-card",
    ),
    TemplateColumn("Numbered", "numbered", False, "numbered", FieldKind.FLAG, example="Yes"),
    TemplateColumn("Current #", "numberedCurrent", False, "numbered_current", FieldKind.INTEGER, example="221"),
    TemplateColumn("Of #", "numberedOf", False, "numbered_of", FieldKind.INTEGER, example="499"),
    TemplateColumn("Notes", "notes", False, "notes", example="Mint condition"),
)

# Per-row required value checks (field -> fixed message)
REQUIRED_VALUE_MESSAGES: dict[str, str] = {
    "playerName": "Player Name is required",
    "season": "Season/Year is required",
    "cardNumber": "Card Number is required",
}

_BY_FIELD = {c.field: c for c in TEMPLATE_COLUMNS}


def column_for_field(field: str) -> TemplateColumn | None:
    return _BY_FIELD.get(field)


def required_fields() -> list[str]:
    return [c.field for c in TEMPLATE_COLUMNS if c.required]
