from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Covers validation errors, missing reference names and per-row import
failures. row=0 marks file-level records (mapping errors, missing
reference names that are not tied to a single row).
"""

__all__ = [
    "ErrorRecord",
    "MAPPING_INCOMPLETE",
    "REQUIRED_VALUE_MISSING",
    "MISSING_REFERENCE",
    "UNRESOLVED_REFERENCE",
    "INSERT_FAILED",
]

MAPPING_INCOMPLETE = "MAPPING_INCOMPLETE"
REQUIRED_VALUE_MISSING = "REQUIRED_VALUE_MISSING"
MISSING_REFERENCE = "MISSING_REFERENCE"
UNRESOLVED_REFERENCE = "UNRESOLVED_REFERENCE"
INSERT_FAILED = "INSERT_FAILED"


@dataclass(frozen=True)
class ErrorRecord:
    """One line of the import error log.

    Attributes:
        timestamp: UTC, ISO 8601 with a trailing Z
        file: uploaded workbook name
        row: spreadsheet row number, 0 for file-level records
        field: canonical field the record refers to
        error_type: classification in UPPER_SNAKE_CASE
        message: human readable description
    """
    timestamp: str
    file: str
    row: int
    field: str
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, field: str, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # no extra keys: dataclass -> dict -> json
        return json.dumps(asdict(self), ensure_ascii=False)
