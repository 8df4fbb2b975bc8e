from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Import progress bar (tqdm), drawn only when stdout is a terminal.

Piped and CI output get no bar; the SUMMARY line carries the totals there.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Card rows handed to the database so far, failed rows in the postfix."""

    def __init__(self, total_rows: int, *, description: str = "Importing cards") -> None:
        self.total_rows = total_rows
        self.processed = 0
        self.failed = 0
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        if self.enabled:
            self.pbar = tqdm(total=total_rows, desc=description, unit="card", leave=False, ncols=80, ascii=True)

    def advance(self, rows: int = 1) -> None:
        self.processed += rows
        if self.pbar is not None:
            self.pbar.update(rows)

    def record_failure(self) -> None:
        self.failed += 1
        if self.pbar is not None:
            self.pbar.set_postfix(failed=self.failed)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
