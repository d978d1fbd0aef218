from __future__ import annotations

import json
from pathlib import Path

import pytest

from inventory_import.models import ImportConfig, LookupTarget
from inventory_import.services.orchestrator import ProcessingError, process_all, scan_upload_files

INVALID_CSV = (
    "Pallet,Item Label,length_mm,width_mm,height_mm,weight_kg,Warehouse Site\n"
    "P-1,Chairs,1200,800,1000,-1,Main Warehouse A\n"
    "P-1,Tables,1200,800\n"
)


def _config(**kw) -> ImportConfig:
    return ImportConfig(source_directory="./data", form="inventory", **kw)


def test_scan_upload_files(temp_workdir: Path):
    data = temp_workdir / "data"
    for name in ["b.csv", "a.XLSX", "notes.txt", "c.xlsx"]:
        (data / name).write_text("", encoding="utf-8")
    (data / "sub.csv").mkdir()
    assert [p.name for p in scan_upload_files(data)] == ["a.XLSX", "b.csv", "c.xlsx"]


def test_scan_missing_directory(temp_workdir: Path):
    with pytest.raises(ProcessingError):
        scan_upload_files(temp_workdir / "missing")


def test_empty_directory(temp_workdir: Path):
    result = process_all(_config())
    assert result.total_files == 0
    assert result.file_stats == []
    assert not list((temp_workdir / "logs").iterdir())


def test_valid_file_offline(temp_workdir: Path, write_upload, valid_csv_text):
    write_upload("ok.csv", valid_csv_text)
    result = process_all(_config())
    assert (result.valid_files, result.invalid_files, result.failed_files) == (1, 0, 0)
    assert result.total_rows == 2
    [stat] = result.file_stats
    assert stat.status == "valid"
    assert stat.existing_check == "skipped"


def test_invalid_and_failed_files_are_logged(temp_workdir: Path, write_upload, valid_csv_text):
    write_upload("bad.csv", INVALID_CSV)
    write_upload("empty.csv", "Pallet,Item Label\n")
    write_upload("ok.csv", valid_csv_text)
    result = process_all(_config())
    assert (result.valid_files, result.invalid_files, result.failed_files) == (1, 1, 1)
    assert result.invalid_rows == 1
    assert result.skipped_lines == 1
    stats = {s.file_name: s for s in result.file_stats}
    assert stats["empty.csv"].status == "failed"
    assert stats["bad.csv"].status == "invalid"

    [log_file] = list((temp_workdir / "logs").glob("errors-*.log"))
    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    types = {(r["file"], r["error_type"]) for r in records}
    assert ("empty.csv", "STRUCTURE_ERROR") in types
    assert ("bad.csv", "MALFORMED_LINE") in types
    assert ("bad.csv", "NEGATIVE_NUMBER") in types


def test_existing_values_checked_with_lookup(temp_workdir: Path, write_upload, valid_csv_text, fake_lookup_cls):
    write_upload("ok.csv", valid_csv_text)
    lookup = fake_lookup_cls({"pallet_no": {"P-002"}})
    cfg = _config(existing_lookup={"pallet_no": LookupTarget("pallet_no", "pallets", "pallet_no")})
    result = process_all(cfg, lookup=lookup)
    assert lookup.calls == [("pallet_no", ["P-001", "P-002"])]
    [stat] = result.file_stats
    assert stat.status == "invalid"
    assert stat.existing_check == "done"
    assert stat.invalid_rows == 1


def test_lookup_failure_marks_file_invalid(temp_workdir: Path, write_upload, valid_csv_text, fake_lookup_cls):
    write_upload("ok.csv", valid_csv_text)
    result = process_all(_config(), lookup=fake_lookup_cls(error=RuntimeError("db down")))
    [stat] = result.file_stats
    assert stat.status == "invalid"
    assert stat.existing_check == "failed"
    assert stat.invalid_rows == 0


def test_missing_required_mapping_is_invalid(temp_workdir: Path, write_upload):
    write_upload("partial.csv", "Pallet,Weight (kg)\nP-1,10\n")
    result = process_all(_config())
    [stat] = result.file_stats
    assert stat.status == "invalid"
    assert "Item Label" in stat.missing_mappings
