from __future__ import annotations

from collections.abc import Iterable

from ..models.column_mapping import ColumnMapping
from ..models.template_columns import TEMPLATE_COLUMNS, TemplateColumn

"""Column auto-matching: uploaded headers -> canonical card fields.

Comparison is case-insensitive on trimmed text, against the template
display headers in declaration order, in two passes:
1. exact match, for every header
2. substring match (template header inside the upload header or vice
   versa) for the headers still unmatched, against the unclaimed columns
Headers matching neither are omitted (implicit skip).

Exact matches are claimed first, so a header that names a column exactly
always gets it even when an earlier header would reach it by substring.
No canonical field is mapped twice; output keeps the upload order. The
result is advisory; the user confirms or edits it before validation.
"""

__all__ = [
    "auto_match_columns",
]


def _normalize(text: str) -> str:
    return text.strip().lower()


def _distinct_headers(headers: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for header in headers:
        if header in seen or not _normalize(header):
            continue
        seen.add(header)
        result.append(header)
    return result


def auto_match_columns(
    headers: Iterable[str],
    columns: tuple[TemplateColumn, ...] = TEMPLATE_COLUMNS,
) -> list[ColumnMapping]:
    candidates = _distinct_headers(headers)
    matched: dict[str, str] = {}  # header -> field
    claimed: set[str] = set()

    for header in candidates:
        normalized = _normalize(header)
        for col in columns:
            if col.field not in claimed and _normalize(col.header) == normalized:
                matched[header] = col.field
                claimed.add(col.field)
                break

    for header in candidates:
        if header in matched:
            continue
        normalized = _normalize(header)
        for col in columns:
            if col.field in claimed:
                continue
            template = _normalize(col.header)
            if template in normalized or normalized in template:
                matched[header] = col.field
                claimed.add(col.field)
                break

    return [ColumnMapping(excel_column=h, field=matched[h]) for h in candidates if h in matched]
