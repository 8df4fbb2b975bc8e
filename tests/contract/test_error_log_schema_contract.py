from __future__ import annotations

import json
from pathlib import Path

from cardvault.logging.error_log import ErrorLogBuffer
from cardvault.models.error_record import MISSING_REFERENCE, ErrorRecord

REQUIRED_KEYS = {"timestamp", "file", "row", "field", "error_type", "message"}


def test_error_log_lines_have_exactly_the_contract_keys(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path)
    buf.append(ErrorRecord.create("cards.xlsx", 0, "brandId", MISSING_REFERENCE, "'Topps' not found in brands"))
    buf.append(ErrorRecord.create("cards.xlsx", 7, "season", "REQUIRED_VALUE_MISSING", "Season/Year is required"))
    path = buf.flush()
    for line in path.read_text(encoding="utf-8").splitlines():
        data = json.loads(line)
        assert set(data) == REQUIRED_KEYS
        assert isinstance(data["row"], int)
        assert data["error_type"].isupper()


def test_non_ascii_kept_verbatim(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path)
    buf.append(ErrorRecord.create("cartes.xlsx", 2, "playerName", "INSERT_FAILED", "Luka Dončić"))
    path = buf.flush()
    assert "Dončić" in path.read_text(encoding="utf-8")
