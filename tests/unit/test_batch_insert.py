from __future__ import annotations

import pytest

from cardvault.db.batch_insert import BatchInsertError, BatchMetrics, InsertResult, batch_insert, insert_row

from conftest import FakeCursor


def test_batch_insert_basic(patch_execute_values):
    cur = FakeCursor()
    res = batch_insert(cur, table="cards", columns=["collection_id", "player_name"], rows=[[1, "A"], [1, "B"]])
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 2
    assert cur.inserted == [(1, "A"), (1, "B")]
    statement = repr(patch_execute_values[0]["sql"])
    assert "Identifier('cards')" in statement
    assert "Identifier('player_name')" in statement


def test_batch_insert_plain_values_statement(patch_execute_values):
    res = batch_insert(FakeCursor(), table="cards", columns=["player_name"], rows=[["A"], ["B"]])
    assert res == InsertResult(inserted_rows=2)
    assert patch_execute_values[0]["fetch"] is False
    statement = repr(patch_execute_values[0]["sql"])
    assert "SQL('%s')" in statement
    assert "RETURNING" not in statement


def test_batch_insert_empty_rows(patch_execute_values):
    seen: list[BatchMetrics] = []
    res = batch_insert(FakeCursor(), table="cards", columns=["player_name"], rows=[], metrics_callback=seen.append)
    assert res.inserted_rows == 0
    assert patch_execute_values == []
    assert seen == []


def test_batch_insert_page_size_passed_through(patch_execute_values):
    batch_insert(FakeCursor(), table="cards", columns=["player_name"], rows=[["A"]], page_size=50)
    assert patch_execute_values[0]["page_size"] == 50


def test_metrics_callback_invoked_once(patch_execute_values):
    seen: list[BatchMetrics] = []
    batch_insert(FakeCursor(), table="cards", columns=["player_name"], rows=[["A"], ["B"], ["C"]],
                 metrics_callback=seen.append)
    assert len(seen) == 1
    assert seen[0].batch_size == 3
    assert seen[0].elapsed_seconds >= 0
    assert seen[0].end_time >= seen[0].start_time


def test_driver_error_wrapped(monkeypatch):
    import cardvault.db.batch_insert as bi

    def fail(*args, **kwargs):
        raise RuntimeError("relation does not exist")

    monkeypatch.setattr(bi, "execute_values", fail)
    seen: list[BatchMetrics] = []
    with pytest.raises(BatchInsertError, match="relation does not exist"):
        batch_insert(FakeCursor(), table="cards", columns=["c"], rows=[[1]], metrics_callback=seen.append)
    # metrics still reported for the failed call
    assert len(seen) == 1


def test_insert_row_executes_single_statement():
    cur = FakeCursor()
    insert_row(cur, "cards", ["collection_id", "player_name"], [4, "A"])
    assert cur.inserted == [(4, "A")]
    statement, params = cur.executed[0]
    assert "Placeholder()" in statement
    assert params == (4, "A")


def test_insert_row_error_wrapped():
    cur = FakeCursor(fail_marker="X")
    with pytest.raises(BatchInsertError, match="constraint violation"):
        insert_row(cur, "cards", ["player_name"], ["X"])
