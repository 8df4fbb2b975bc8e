from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import (
    INSERT_FAILED,
    MAPPING_INCOMPLETE,
    MISSING_REFERENCE,
    REQUIRED_VALUE_MISSING,
    UNRESOLVED_REFERENCE,
    ErrorRecord,
)
from ..models.import_result import ImportResult
from ..models.template_columns import ReferenceType
from ..models.validation import ValidationResult

"""Error log buffering and JSON Lines output.

One file per run: <logs_dir>/errors-YYYYMMDD-HHMMSS.log (UTC), created
lazily on the first non-empty flush.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "records_from_validation",
    "records_from_import",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer of error records; flush() appends them as JSON Lines.

    Not thread safe (one buffer per request/run).
    """

    def __init__(self, logs_dir: Path | str = "logs") -> None:
        self.logs_dir = Path(logs_dir)
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend(self, records: list[ErrorRecord]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the file path, or None if nothing was written."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp


def records_from_validation(file: str, result: ValidationResult) -> list[ErrorRecord]:
    records = []
    for err in result.errors:
        error_type = MAPPING_INCOMPLETE if err.row == 0 else REQUIRED_VALUE_MISSING
        records.append(ErrorRecord.create(file, err.row, err.field, error_type, err.message))
    for ref_type in ReferenceType:
        for name in result.missing_data.get(ref_type):
            records.append(
                ErrorRecord.create(
                    file, 0, ref_type.field, MISSING_REFERENCE,
                    f"'{name}' not found in {ref_type.table}",
                )
            )
    return records


def records_from_import(file: str, result: ImportResult) -> list[ErrorRecord]:
    records = []
    for nulled in result.nulled_references:
        records.append(
            ErrorRecord.create(
                file, nulled.row, nulled.field, UNRESOLVED_REFERENCE,
                f"'{nulled.name}' did not resolve; stored as NULL",
            )
        )
    for failure in result.failed_rows:
        records.append(ErrorRecord.create(file, failure.row, "", INSERT_FAILED, failure.message))
    return records
