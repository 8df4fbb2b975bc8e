from __future__ import annotations

import base64
import binascii
import math
from datetime import date, datetime, time
from io import BytesIO
from typing import Any

import pandas as pd

from ..models.parsed_sheet import ParsedSheet

"""Workbook reader for uploaded card spreadsheets.

Only the first sheet is read. Row 1 is the header row, kept verbatim (no
trimming, no case change); every later row becomes one record keyed by
header. Cells are stringified, missing cells become "".
"""

__all__ = [
    "ParseError",
    "decode_file_data",
    "read_first_sheet",
    "parse_workbook",
]


class ParseError(Exception):
    """Raised when the upload is unreadable or has no header row."""


def decode_file_data(data: bytes | bytearray | str) -> bytes:
    """Return raw workbook bytes.

    The wizard client submits the file base64 encoded; raw bytes pass through.
    """
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        payload = data.split(",", 1)[1] if data.startswith("data:") else data
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ParseError(f"file data is not valid base64: {e}") from e
    raise ParseError(f"unsupported file data type: {type(data).__name__}")


def read_first_sheet(data: bytes) -> pd.DataFrame:
    """Read the first sheet without header inference or NA conversion."""
    try:
        return pd.read_excel(
            BytesIO(data),
            sheet_name=0,
            header=None,
            dtype=object,
            keep_default_na=False,
            engine="openpyxl",
        )
    except Exception as e:
        raise ParseError(f"unreadable workbook: {e}") from e


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def parse_workbook(data: bytes) -> ParsedSheet:
    """Parse uploaded workbook bytes into headers + row records.

    Short rows yield "" for the missing trailing columns; cells beyond the
    header width are dropped (no header to key them by).

    Raises
    ------
    ParseError: unreadable bytes or a sheet with zero rows
    """
    df = read_first_sheet(data)
    if df.shape[0] == 0:
        raise ParseError("Excel file is empty")

    headers = [_stringify(v) for v in df.iloc[0].tolist()]
    # pandas pads to the widest row; trailing blank header cells are padding
    while headers and headers[-1] == "":
        headers.pop()

    rows: list[dict[str, str]] = []
    for raw in df.iloc[1:].itertuples(index=False, name=None):
        cells = list(raw)
        record: dict[str, str] = {}
        for idx, header in enumerate(headers):
            record[header] = _stringify(cells[idx]) if idx < len(cells) else ""
        rows.append(record)
    return ParsedSheet(headers=headers, rows=rows)
