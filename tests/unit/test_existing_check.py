from __future__ import annotations

import pytest

from inventory_import.catalog import INVENTORY_FORM
from inventory_import.models import ColumnMapping
from inventory_import.services.existing_check import ExistingLookupError, collect_candidates, run_existing_check

MAPPING = ColumnMapping([("Pallet", "pallet_no"), ("SKU", "sku")])


def test_collect_candidates_distinct_trimmed_in_row_order():
    rows = [
        {"Pallet": " P-2", "SKU": None},
        {"Pallet": "P-1", "SKU": "S-1"},
        {"Pallet": "P-2 ", "SKU": ""},
    ]
    assert collect_candidates(rows, MAPPING, INVENTORY_FORM) == {
        "pallet_no": ("P-2", "P-1"),
        "sku": ("S-1",),
    }


def test_collect_candidates_skips_unmapped_unique_fields():
    m = ColumnMapping([("Pallet", "pallet_no")])
    assert collect_candidates([{"Pallet": "P-1"}], m, INVENTORY_FORM) == {"pallet_no": ("P-1",)}


def test_run_existing_check_one_call_per_field(fake_lookup_cls):
    lookup = fake_lookup_cls({"pallet_no": {"P-1", "P-77"}})
    snap = run_existing_check(lookup, {"pallet_no": ("P-1", "P-2"), "sku": ()}, version=3)
    assert lookup.calls == [("pallet_no", ["P-1", "P-2"])]
    assert snap.values_for("pallet_no") == {"P-1"}
    assert snap.covers({"pallet_no": ("P-1", "P-2")})
    assert snap.version == 3


def test_values_not_asked_for_are_ignored():
    class Chatty:
        def find_existing(self, field_id, candidates):
            return {"P-1", "OTHER"}

    snap = run_existing_check(Chatty(), {"pallet_no": ("P-1",)})
    assert snap.values_for("pallet_no") == {"P-1"}


def test_lookup_failure_is_wrapped(fake_lookup_cls):
    lookup = fake_lookup_cls(error=TimeoutError("db timeout"))
    with pytest.raises(ExistingLookupError, match="db timeout"):
        run_existing_check(lookup, {"pallet_no": ("P-1",)})
