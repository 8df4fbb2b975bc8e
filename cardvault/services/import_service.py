from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..config.loader import AppConfig
from ..db.repositories import CollectionRepository, ReferenceRepository
from ..excel.reader import decode_file_data, parse_workbook
from ..excel.template import TEMPLATE_FILENAME, generate_template
from ..models.column_mapping import ColumnMapping, coerce_mappings
from ..models.import_result import ImportResult
from ..models.validation import ValidationResult
from .importer import import_cards
from .matcher import auto_match_columns
from .validator import validate_rows

"""Excel import wizard operations.

Every step is request scoped: the client re-sends the workbook on each call
and nothing is kept between them. validate() and import_file() each take
their own reference snapshot, so a valid validation result is advisory;
set import.revalidate_before_import to re-check inside the import
transaction.
"""

__all__ = [
    "AuthorizationError",
    "ImportRejectedError",
    "TemplateDownload",
    "ParseSummary",
    "ImportService",
]

logger = logging.getLogger(__name__)

FileData = bytes | str
MappingInput = Iterable[ColumnMapping | Mapping[str, Any]]


class AuthorizationError(Exception):
    """The caller does not own the target collection (or it does not exist)."""


class ImportRejectedError(Exception):
    """Re-validation inside the import transaction failed."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        super().__init__(
            f"import rejected: {len(result.errors)} error(s), "
            f"{result.missing_data.total()} missing reference name(s)"
        )


@dataclass(frozen=True)
class TemplateDownload:
    file_bytes: bytes
    suggested_filename: str


@dataclass(frozen=True)
class ParseSummary:
    headers: list[str]
    row_count: int
    auto_mappings: list[ColumnMapping]

    def to_dict(self) -> dict[str, Any]:
        return {
            "headers": self.headers,
            "rowCount": self.row_count,
            "autoMappings": [m.to_dict() for m in self.auto_mappings],
        }


class ImportService:
    """Facade over template / parse / validate / import.

    cursor: psycopg2 cursor; the service issues BEGIN/COMMIT/ROLLBACK around
    an import.
    """

    def __init__(
        self,
        cursor: Any,
        config: AppConfig | None = None,
        references: ReferenceRepository | None = None,
        collections: CollectionRepository | None = None,
    ) -> None:
        self.cursor = cursor
        self.config = config or AppConfig()
        self.references = references or ReferenceRepository(cursor)
        self.collections = collections or CollectionRepository(cursor)

    def download_template(self) -> TemplateDownload:
        return TemplateDownload(file_bytes=generate_template(), suggested_filename=TEMPLATE_FILENAME)

    def parse_file(self, file_data: FileData) -> ParseSummary:
        sheet = parse_workbook(decode_file_data(file_data))
        mappings = auto_match_columns(sheet.headers)
        logger.info("parsed upload: %d column(s), %d row(s), %d auto-matched",
                    len(sheet.headers), sheet.row_count, len(mappings))
        return ParseSummary(headers=sheet.headers, row_count=sheet.row_count, auto_mappings=mappings)

    def validate(self, file_data: FileData, mappings: MappingInput) -> ValidationResult:
        column_mappings = coerce_mappings(mappings)
        sheet = parse_workbook(decode_file_data(file_data))
        snapshot = self.references.load_snapshot()
        result = validate_rows(sheet.rows, column_mappings, snapshot)
        logger.info(
            "validation: valid=%s errors=%d missing_refs=%d rows=%d",
            result.valid, len(result.errors), result.missing_data.total(), sheet.row_count,
        )
        return result

    def authorize(self, collection_id: int, user_id: int) -> None:
        owner = self.collections.owner_of(collection_id)
        if owner is None or owner != user_id:
            raise AuthorizationError("Collection not found or unauthorized")

    def import_file(
        self,
        collection_id: int,
        user_id: int,
        file_data: FileData,
        mappings: MappingInput | None = None,
    ) -> ImportResult:
        """Import the workbook rows into collection_id.

        Ownership is checked before the upload is parsed. Without mappings the
        auto-matched columns are used as confirmed. The snapshot read,
        optional re-validation and all inserts share one transaction.
        """
        self.authorize(collection_id, user_id)
        column_mappings = coerce_mappings(mappings) if mappings is not None else None
        sheet = parse_workbook(decode_file_data(file_data))
        if column_mappings is None:
            column_mappings = auto_match_columns(sheet.headers)
        policy = self.config.import_policy

        self.cursor.execute("BEGIN")
        try:
            snapshot = self.references.load_snapshot()
            if policy.revalidate_before_import:
                check = validate_rows(sheet.rows, column_mappings, snapshot)
                if not check.valid:
                    raise ImportRejectedError(check)
            result = import_cards(
                self.cursor, collection_id, sheet.rows, column_mappings, snapshot, policy
            )
            self.cursor.execute("COMMIT")
        except Exception:
            try:
                self.cursor.execute("ROLLBACK")
            except Exception as rollback_error:
                logger.error("rollback failed: %s", rollback_error)
            raise

        logger.info(
            "imported collection=%s submitted=%d persisted=%d",
            collection_id, result.imported_count, result.persisted_count,
        )
        return result
