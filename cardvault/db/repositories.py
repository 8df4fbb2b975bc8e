from __future__ import annotations

import logging
from typing import Any

from psycopg2 import sql

from ..models.reference import ReferenceSnapshot
from ..models.template_columns import ReferenceType

"""Read-side data access for the import pipeline.

The vocabulary tables are admin-curated; names are stored with their
original casing and compared case-insensitively by the pipeline.
"""

__all__ = [
    "CARDS_TABLE",
    "ReferenceRepository",
    "CollectionRepository",
]

logger = logging.getLogger(__name__)

CARDS_TABLE = "cards"


class ReferenceRepository:
    """Lists the reference vocabulary tables through a psycopg2 cursor."""

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def list(self, ref_type: ReferenceType) -> list[dict[str, Any]]:
        self.cursor.execute(
            sql.SQL("SELECT id, name FROM {} ORDER BY id").format(sql.Identifier(ref_type.table))
        )
        return [{"id": row[0], "name": row[1]} for row in self.cursor.fetchall()]

    def load_snapshot(self) -> ReferenceSnapshot:
        rows = {ref_type: self.list(ref_type) for ref_type in ReferenceType}
        logger.debug(
            "reference snapshot %s",
            {t.table: len(v) for t, v in rows.items()},
        )
        return ReferenceSnapshot.from_rows(rows)


class CollectionRepository:
    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor

    def owner_of(self, collection_id: int) -> int | None:
        """Owning user id, or None when the collection does not exist."""
        self.cursor.execute("SELECT user_id FROM collections WHERE id = %s", (collection_id,))
        row = self.cursor.fetchone()
        return None if row is None else row[0]
