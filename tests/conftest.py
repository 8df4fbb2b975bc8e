# Shared pytest fixtures
from __future__ import annotations

import importlib
import json
import tempfile
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from cardvault.logging.init import reset_logging
from cardvault.models.reference import ReferenceSnapshot
from cardvault.models.template_columns import ReferenceType

SCENARIO_HEADERS = ["Player Name", "Brand", "Series", "Season / Year", "Card Number"]
SCENARIO_ROW = ["LeBron James", "Panini", "Prizm", "2012-13", "1"]


def workbook_bytes(rows: list[list[object]], sheets: dict[str, list[list[object]]] | None = None) -> bytes:
    """Build an .xlsx in memory; ``rows`` go to the first sheet ("Cards")."""
    buffer = BytesIO()
    all_sheets = {"Cards": rows, **(sheets or {})}
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, data in all_sheets.items():
            pd.DataFrame(data).to_excel(writer, sheet_name=name, header=False, index=False)
    return buffer.getvalue()


def make_snapshot(**names: list[str]) -> ReferenceSnapshot:
    """make_snapshot(brand=["Panini"], series=["Prizm"]) -> ids 1..n per type."""
    rows = {}
    for ref_type in ReferenceType:
        values = names.get(ref_type.name.lower(), [])
        rows[ref_type] = [{"id": i + 1, "name": n} for i, n in enumerate(values)]
    return ReferenceSnapshot.from_rows(rows)


class FakeReferenceRepository:
    def __init__(self, **names: list[str]) -> None:
        self.names = names
        self.loads = 0

    def list(self, ref_type: ReferenceType) -> list[dict[str, Any]]:
        return [{"id": i + 1, "name": n} for i, n in enumerate(self.names.get(ref_type.name.lower(), []))]

    def load_snapshot(self) -> ReferenceSnapshot:
        self.loads += 1
        return ReferenceSnapshot.from_rows({t: self.list(t) for t in ReferenceType})


class FakeCollectionRepository:
    def __init__(self, owners: dict[int, int]) -> None:
        self.owners = owners
        self.calls: list[int] = []

    def owner_of(self, collection_id: int) -> int | None:
        self.calls.append(collection_id)
        return self.owners.get(collection_id)


class FakeCursor:
    """Minimal psycopg2 cursor stand-in.

    - SELECT id, name FROM <vocabulary table> answers from ``tables``
    - SELECT user_id FROM collections answers from ``owners``
    - single-row INSERTs are recorded in ``inserted``; params containing
      ``fail_marker`` raise
    """

    def __init__(
        self,
        tables: dict[str, list[tuple[int, str]]] | None = None,
        owners: dict[int, int] | None = None,
        fail_marker: str | None = None,
    ) -> None:
        self.tables = tables or {}
        self.owners = owners or {}
        self.fail_marker = fail_marker
        self.executed: list[tuple[str, Any]] = []
        self.inserted: list[tuple[Any, ...]] = []
        self._result: list[tuple[Any, ...]] = []

    def execute(self, query: Any, params: Any = None) -> None:
        text = query if isinstance(query, str) else repr(query)
        self.executed.append((text, params))
        self._result = []
        if "SELECT id, name FROM" in text:
            for table, rows in self.tables.items():
                if f"'{table}'" in text:
                    self._result = list(rows)
        elif "FROM collections" in text:
            owner = self.owners.get(params[0])
            self._result = [] if owner is None else [(owner,)]
        elif "INSERT INTO" in text:
            if self.fail_marker is not None and self.fail_marker in params:
                raise RuntimeError(f"constraint violation for {self.fail_marker}")
            self.inserted.append(tuple(params))

    def fetchall(self) -> list[tuple[Any, ...]]:
        return self._result

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._result[0] if self._result else None

    def statements(self) -> list[str]:
        return [q for q, _ in self.executed]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: cardvault
  password: secret
  database: cardvault
import:
  unresolved_references: nullify
  batch_commit: atomic
  revalidate_before_import: false
  page_size: 500
image_search:
  timeout_seconds: 5
  max_results: 9
logs_directory: logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "cardvault.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def scenario_workbook() -> bytes:
    return workbook_bytes([SCENARIO_HEADERS, SCENARIO_ROW])


@pytest.fixture()
def patch_execute_values(monkeypatch):
    """Replace execute_values; inserted rows land on cursor.inserted."""
    import cardvault.db.batch_insert as bi

    calls: list[dict[str, Any]] = []

    def fake_execute_values(cursor, sql, rows, template=None, page_size=100, fetch=False):
        calls.append({"sql": sql, "rows": list(rows), "page_size": page_size, "fetch": fetch})
        if hasattr(cursor, "inserted"):
            cursor.inserted.extend(tuple(r) for r in rows)
        return None

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return calls


def extract_json(out: str) -> Any:
    """First top-level JSON object printed by the CLI (log lines interleave)."""
    lines = out.splitlines()
    start = lines.index("{")
    end = lines.index("}", start)
    return json.loads("\n".join(lines[start:end + 1]))


def install_fake_db(monkeypatch, cursor: FakeCursor) -> None:
    cli_module = importlib.import_module("cardvault.cli.__main__")

    @contextmanager
    def fake_connection(cfg):
        yield cursor

    monkeypatch.setattr(cli_module, "_db_connection", fake_connection)


@pytest.fixture(autouse=True)
def _detach_app_logger():
    # handlers bound to a finished test's captured stdout must not leak
    yield
    reset_logging()
