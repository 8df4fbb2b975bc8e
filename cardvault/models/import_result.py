from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

"""Import models: resolved card records and the aggregated import result."""

__all__ = [
    "CardRecord",
    "NulledReference",
    "RowFailure",
    "ImportResult",
    "BatchStatsAccumulator",
]


@dataclass(frozen=True)
class CardRecord:
    """Column values for one cards INSERT, tagged with its source row."""
    row_number: int
    values: dict[str, Any]  # cards column -> value (collection_id included)


@dataclass(frozen=True)
class NulledReference:
    """A reference name that resolved to no vocabulary id at import time."""
    row: int
    field: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "field": self.field, "name": self.name}


@dataclass(frozen=True)
class RowFailure:
    row: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "message": self.message}


@dataclass(frozen=True)
class ImportResult:
    """Aggregated result of one import call.

    imported_count: rows submitted for insertion
    persisted_count: rows actually written (differs only under per_row commits)
    """
    collection_id: int
    imported_count: int
    persisted_count: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    failed_rows: list[RowFailure] = field(default_factory=list)
    nulled_references: list[NulledReference] = field(default_factory=list)
    total_batches: int = 0
    avg_batch_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "collectionId": self.collection_id,
            "importedCount": self.imported_count,
            "persistedCount": self.persisted_count,
            "failedRows": [f.to_dict() for f in self.failed_rows],
            "nulledReferences": [n.to_dict() for n in self.nulled_references],
            "elapsedSeconds": self.elapsed_seconds,
        }


class BatchStatsAccumulator:
    """Collects per-batch insert timings."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float]:
        """Returns (total_batches, avg_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0)
        return (len(self.batch_times), statistics.mean(self.batch_times))
