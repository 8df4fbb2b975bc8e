from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2 import sql
from psycopg2.extras import execute_values

"""Card row inserts.

batch_insert: psycopg2.extras.execute_values paging for the atomic commit
policy. insert_row: single-row INSERT for the per-row (savepoint) policy.
Identifiers are quoted through psycopg2.sql; transaction control is left to
the caller.
"""

__all__ = [
    "BatchInsertError",
    "BatchMetrics",
    "InsertResult",
    "batch_insert",
    "insert_row",
]


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing for a single execute_values call."""
    batch_size: int
    elapsed_seconds: float
    start_time: float
    end_time: float


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def _insert_statement(table: str, columns: Sequence[str]) -> sql.Composed:
    return sql.SQL("INSERT INTO {} ({}) VALUES ").format(
        sql.Identifier(table),
        sql.SQL(",").join(sql.Identifier(c) for c in columns),
    )


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 500,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Perform a batched INSERT.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table
    columns: insert columns, same order as each row
    rows: row value sequences
    page_size: execute_values page size
    metrics_callback: receives one BatchMetrics per call; not invoked for
        empty input
    """
    rows_list = [tuple(r) for r in rows]
    if not rows_list:
        return InsertResult(inserted_rows=0)

    statement = _insert_statement(table, columns) + sql.SQL("%s")

    start_time = time.time()
    try:
        execute_values(cursor, statement, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return InsertResult(inserted_rows=len(rows_list))


def insert_row(cursor: Any, table: str, columns: Sequence[str], values: Sequence[Any]) -> None:
    statement = _insert_statement(table, columns) + sql.SQL("({})").format(
        sql.SQL(",").join(sql.Placeholder() * len(columns))
    )
    try:
        cursor.execute(statement, tuple(values))
    except Exception as e:
        raise BatchInsertError(str(e)) from e
