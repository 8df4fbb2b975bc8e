from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

from ..config.loader import PER_ROW, REJECT, ImportPolicy
from ..db.batch_insert import BatchInsertError, BatchMetrics, batch_insert, insert_row
from ..db.repositories import CARDS_TABLE
from ..models.column_mapping import ColumnMapping, field_lookup
from ..models.import_result import (
    BatchStatsAccumulator,
    CardRecord,
    ImportResult,
    NulledReference,
    RowFailure,
)
from ..models.reference import ReferenceSnapshot
from ..models.template_columns import FieldKind, column_for_field
from .progress import ProgressTracker
from .validator import FIRST_DATA_ROW

"""Card import: resolve reference names to ids and insert card rows.

Field resolution per template column kind:
- reference: case-insensitive name -> id from the snapshot; unresolved -> None
- flag: True iff the trimmed, lower-cased cell is "yes" or "true"
- integer: leading integer of the cell, None when empty or non-numeric
- text: trimmed string, None when empty

The importer does not validate. Unresolved names are handled per
ImportPolicy.unresolved_references; transaction boundaries (BEGIN/COMMIT)
belong to the caller, the per-row policy uses savepoints inside them.
"""

__all__ = [
    "COLLECTION_COLUMN",
    "UnresolvedReferenceError",
    "ImportFailedError",
    "build_card_records",
    "card_columns",
    "import_cards",
]

logger = logging.getLogger(__name__)

COLLECTION_COLUMN = "collection_id"
ROW_SAVEPOINT = "card_row"
TRUE_VALUES = frozenset({"yes", "true"})

_LEADING_INT = re.compile(r"^[+-]?\d+")


class UnresolvedReferenceError(Exception):
    """Raised under the reject policy when reference names do not resolve."""

    def __init__(self, unresolved: list[NulledReference]) -> None:
        self.unresolved = unresolved
        detail = ", ".join(f"row {u.row} {u.field}='{u.name}'" for u in unresolved[:10])
        more = f" (+{len(unresolved) - 10} more)" if len(unresolved) > 10 else ""
        super().__init__(f"{len(unresolved)} unresolved reference(s): {detail}{more}")


class ImportFailedError(Exception):
    """Raised when an atomic batch insert fails; nothing was persisted."""


def _parse_int(value: str) -> int | None:
    match = _LEADING_INT.match(value)
    return int(match.group(0)) if match else None


def card_columns(mappings: Iterable[ColumnMapping]) -> list[str]:
    """Insert columns: collection_id then one column per mapped field."""
    columns = [COLLECTION_COLUMN]
    for field in field_lookup(mappings):
        columns.append(column_for_field(field).db_column)  # type: ignore[union-attr]
    return columns


def build_card_records(
    collection_id: int,
    rows: Sequence[dict[str, str]],
    mappings: Iterable[ColumnMapping],
    snapshot: ReferenceSnapshot,
) -> tuple[list[CardRecord], list[NulledReference]]:
    """Resolve every row into a CardRecord; also returns the names that went NULL."""
    lookup = field_lookup(mappings)
    records: list[CardRecord] = []
    nulled: list[NulledReference] = []
    for index, row in enumerate(rows):
        row_number = index + FIRST_DATA_ROW
        values: dict[str, Any] = {COLLECTION_COLUMN: collection_id}
        for field, excel_column in lookup.items():
            column = column_for_field(field)
            if column is None:  # coerce_mappings rejects these upstream
                continue
            raw = row.get(excel_column)
            value = raw.strip() if isinstance(raw, str) else ""

            if column.kind is FieldKind.REFERENCE and column.reference is not None:
                resolved = None
                if value:
                    resolved = snapshot.resolve(column.reference, value)
                    if resolved is None:
                        nulled.append(NulledReference(row=row_number, field=field, name=value))
                values[column.db_column] = resolved
            elif column.kind is FieldKind.FLAG:
                values[column.db_column] = value.lower() in TRUE_VALUES
            elif column.kind is FieldKind.INTEGER:
                values[column.db_column] = _parse_int(value) if value else None
            else:
                values[column.db_column] = value or None
        records.append(CardRecord(row_number=row_number, values=values))
    return records, nulled


def _insert_atomic(
    cursor: Any,
    columns: list[str],
    records: list[CardRecord],
    page_size: int,
    stats: BatchStatsAccumulator,
) -> int:
    def on_batch(metrics: BatchMetrics) -> None:
        stats.add_batch_time(metrics.elapsed_seconds)

    inserted = 0
    with ProgressTracker(len(records)) as progress:
        for start in range(0, len(records), page_size):
            chunk = records[start:start + page_size]
            try:
                result = batch_insert(
                    cursor,
                    CARDS_TABLE,
                    columns,
                    [[r.values[c] for c in columns] for r in chunk],
                    page_size=page_size,
                    metrics_callback=on_batch,
                )
            except BatchInsertError as e:
                first = chunk[0].row_number
                last = chunk[-1].row_number
                raise ImportFailedError(f"insert failed in rows {first}-{last}: {e}") from e
            inserted += result.inserted_rows
            progress.advance(len(chunk))
    return inserted


def _insert_per_row(
    cursor: Any,
    columns: list[str],
    records: list[CardRecord],
) -> tuple[int, list[RowFailure]]:
    persisted = 0
    failures: list[RowFailure] = []
    with ProgressTracker(len(records)) as progress:
        for record in records:
            cursor.execute(f"SAVEPOINT {ROW_SAVEPOINT}")
            try:
                insert_row(cursor, CARDS_TABLE, columns, [record.values[c] for c in columns])
            except BatchInsertError as e:
                cursor.execute(f"ROLLBACK TO SAVEPOINT {ROW_SAVEPOINT}")
                failures.append(RowFailure(row=record.row_number, message=str(e)))
                progress.record_failure()
                logger.warning("row %d insert failed: %s", record.row_number, e)
            else:
                cursor.execute(f"RELEASE SAVEPOINT {ROW_SAVEPOINT}")
                persisted += 1
            progress.advance()
    return persisted, failures


def import_cards(
    cursor: Any,
    collection_id: int,
    rows: Sequence[dict[str, str]],
    mappings: Iterable[ColumnMapping],
    snapshot: ReferenceSnapshot,
    policy: ImportPolicy | None = None,
) -> ImportResult:
    """Insert one card per row into collection_id.

    Raises
    ------
    UnresolvedReferenceError: reject policy and at least one unresolved name
        (raised before any insert)
    ImportFailedError: atomic policy and a batch insert failed
    """
    policy = policy or ImportPolicy()
    mappings = list(mappings)
    start_time = datetime.now(UTC)

    records, nulled = build_card_records(collection_id, rows, mappings, snapshot)
    if nulled:
        if policy.unresolved_references == REJECT:
            raise UnresolvedReferenceError(nulled)
        logger.warning("%d reference name(s) did not resolve and will be stored as NULL", len(nulled))

    columns = card_columns(mappings)
    stats = BatchStatsAccumulator()
    failures: list[RowFailure] = []
    if not records:
        persisted = 0
    elif policy.batch_commit == PER_ROW:
        persisted, failures = _insert_per_row(cursor, columns, records)
    else:
        persisted = _insert_atomic(cursor, columns, records, policy.page_size, stats)

    end_time = datetime.now(UTC)
    elapsed = (end_time - start_time).total_seconds()
    total_batches, avg_batch = stats.get_stats()
    logger.debug(
        "collection=%s columns=%s submitted=%d persisted=%d batches=%d",
        collection_id, columns, len(records), persisted, total_batches,
    )
    return ImportResult(
        collection_id=collection_id,
        imported_count=len(records),
        persisted_count=persisted,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=persisted / elapsed if elapsed > 0 else 0.0,
        failed_rows=failures,
        nulled_references=nulled,
        total_batches=total_batches,
        avg_batch_seconds=avg_batch,
    )
