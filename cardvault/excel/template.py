from __future__ import annotations

from io import BytesIO

import pandas as pd
from openpyxl.utils import get_column_letter

from ..models.template_columns import TEMPLATE_COLUMNS, TemplateColumn

"""Import template generation.

The template is a single "Cards" sheet whose only row is the ordered
display headers of TEMPLATE_COLUMNS.
"""

__all__ = [
    "TEMPLATE_FILENAME",
    "TEMPLATE_SHEET_NAME",
    "generate_template",
    "describe_template",
]

TEMPLATE_FILENAME = "card_import_template.xlsx"
TEMPLATE_SHEET_NAME = "Cards"
COLUMN_WIDTH = 20


def generate_template(columns: tuple[TemplateColumn, ...] = TEMPLATE_COLUMNS) -> bytes:
    headers = [c.header for c in columns]
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(columns=headers).to_excel(writer, sheet_name=TEMPLATE_SHEET_NAME, index=False)
        sheet = writer.sheets[TEMPLATE_SHEET_NAME]
        for idx in range(1, len(headers) + 1):
            sheet.column_dimensions[get_column_letter(idx)].width = COLUMN_WIDTH
    return buffer.getvalue()


def describe_template(columns: tuple[TemplateColumn, ...] = TEMPLATE_COLUMNS) -> list[str]:
    """One sentence per template column, in template order."""
    lines = []
    for c in columns:
        need = "required" if c.required else "optional"
        sentence = f'"{c.header}" fills {c.field} ({need})'
        if c.reference is not None:
            sentence += f", matched by name against {c.reference.table}"
        if c.example:
            sentence += f", e.g. {c.example}"
        lines.append(sentence + ".")
    return lines
