from __future__ import annotations

from inventory_import.models import (
    CellIssue,
    ColumnMapping,
    ExistingValueSnapshot,
    ImportResults,
    RowValidationError,
    ValidationReport,
    ValidationStats,
)
from inventory_import.models.row_data import cell_text


def test_column_mapping_last_write_wins_per_column():
    m = ColumnMapping([("A", "pallet_no"), ("B", "label")])
    m.assign("A", "sku")
    assert m.field_for("A") == "sku"
    assert m.key() == (("B", "label"), ("A", "sku"))
    m.assign("B", None)
    assert not m.is_mapped("label")
    assert len(m) == 1


def test_column_mapping_allows_one_field_from_two_columns():
    m = ColumnMapping([("SKU 1", "sku"), ("SKU 2", "sku")])
    assert m.columns_for("sku") == ["SKU 1", "SKU 2"]


def test_column_mapping_copy_is_independent():
    m = ColumnMapping([("A", "pallet_no")])
    c = m.copy()
    c.assign("A", None)
    assert m.field_for("A") == "pallet_no"
    assert m != c


def test_cell_text():
    assert cell_text(None) == ""
    assert cell_text("  x ") == "x"
    assert cell_text(10.0) == "10"
    assert cell_text(2.5) == "2.5"
    assert cell_text(7) == "7"


def test_snapshot_build_merges_existing_into_checked():
    snap = ExistingValueSnapshot.build({"pallet_no": ["P-9"]}, checked={"pallet_no": ["P-1"]})
    assert snap.contains("pallet_no", "P-9")
    assert not snap.contains("pallet_no", "P-1")
    assert snap.covers({"pallet_no": ("P-1", "P-9")})
    assert not snap.covers({"pallet_no": ("P-2",)})
    assert not snap.covers({"sku": ("S-1",)})
    assert snap.covers({"sku": ()})


def test_report_validity():
    issue = CellIssue(field_id="label", column="Label", code="REQUIRED", message="Item Label is required")
    report = ValidationReport(row_errors=(RowValidationError(row_index=2, issues=(issue,)),))
    assert not report.is_valid
    assert report.invalid_rows == {2}
    assert report.errors_for_row(2) == ("Item Label is required",)
    assert report.errors_for_row(0) == ()
    assert report.row_errors[0].row_number == 3
    assert ValidationReport().is_valid


def test_stats_success_rate():
    assert ValidationStats(total_rows=0, valid_rows=0, invalid_rows=0, mapped_columns=0, total_columns=0).success_rate == 0
    stats = ValidationStats(total_rows=3, valid_rows=2, invalid_rows=1, mapped_columns=7, total_columns=8)
    assert stats.success_rate == 67


def test_import_results_total():
    assert ImportResults(success=3, failed=1).total == 4
