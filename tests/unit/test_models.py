from __future__ import annotations

import pytest

from cardvault.models import (
    ColumnMapping,
    MappingError,
    MissingReferenceReport,
    ReferenceSnapshot,
    ReferenceType,
    coerce_mappings,
    field_lookup,
)
from cardvault.models.template_columns import TEMPLATE_COLUMNS, column_for_field, required_fields


def test_required_fields():
    assert required_fields() == ["playerName", "season", "cardNumber"]


def test_reference_columns_point_at_their_vocabulary():
    for column in TEMPLATE_COLUMNS:
        if column.reference is not None:
            assert column.reference.field == column.field
    assert column_for_field("teamId").reference is ReferenceType.TEAM
    assert column_for_field("nope") is None


def test_mapping_from_dict_accepts_both_keys():
    assert ColumnMapping.from_dict({"excelColumn": "Brand", "canonicalField": "brandId"}) == ColumnMapping("Brand", "brandId")
    assert ColumnMapping.from_dict({"excelColumn": "Brand", "dbField": "brandId"}).field == "brandId"
    assert ColumnMapping.from_dict({"excelColumn": "X", "canonicalField": "skip"}).is_skip


@pytest.mark.parametrize(
    "entry",
    [
        {"excelColumn": "Brand"},
        {"excelColumn": "Brand", "canonicalField": "brandName"},
        {"canonicalField": "brandId"},
        ["Brand", "brandId"],
    ],
)
def test_mapping_from_dict_rejects_bad_entries(entry):
    with pytest.raises(MappingError):
        ColumnMapping.from_dict(entry)


def test_mapping_to_dict_round_trip():
    m = ColumnMapping("Card #", "cardNumber")
    assert m.to_dict() == {"excelColumn": "Card #", "canonicalField": "cardNumber"}
    assert ColumnMapping.from_dict(m.to_dict()) == m


def test_coerce_mappings_last_entry_per_column_wins():
    mappings = coerce_mappings([
        {"excelColumn": "A", "canonicalField": "notes"},
        ColumnMapping("B", "playerName"),
        {"excelColumn": "A", "canonicalField": "skip"},
    ])
    assert mappings == [ColumnMapping("A", "skip"), ColumnMapping("B", "playerName")]


def test_coerce_mappings_rejects_unknown_field_object():
    with pytest.raises(MappingError):
        coerce_mappings([ColumnMapping("A", "price")])


def test_field_lookup_drops_skips():
    lookup = field_lookup([ColumnMapping("A", "skip"), ColumnMapping("B", "notes")])
    assert lookup == {"notes": "B"}


def test_snapshot_first_name_wins_on_case_collision():
    snapshot = ReferenceSnapshot.from_rows({
        ReferenceType.BRAND: [{"id": 1, "name": "Panini"}, {"id": 2, "name": "PANINI"}, {"id": 3, "name": None}],
    })
    assert snapshot.resolve(ReferenceType.BRAND, "panini") == 1
    assert snapshot.contains(ReferenceType.BRAND, "Panini")
    assert not snapshot.contains(ReferenceType.SERIES, "Panini")


def test_missing_report_keys_and_dedup():
    report = MissingReferenceReport()
    assert report.is_empty()
    report.add(ReferenceType.AUTOGRAPH_TYPE, "Sticker")
    report.add(ReferenceType.AUTOGRAPH_TYPE, "STICKER")
    data = report.to_dict()
    assert set(data) == {"brands", "series", "inserts", "parallels", "teams", "autographTypes"}
    assert data["autographTypes"] == ["Sticker"]
    assert report.total() == 1
