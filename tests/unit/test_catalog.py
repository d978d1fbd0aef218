from __future__ import annotations

import pytest

from inventory_import.catalog import CATALOGS, INVENTORY_FORM, FieldCatalog, UnknownCatalogError, get_catalog
from inventory_import.models import FieldDefinition, FieldRule, ValueType


def test_inventory_required_fields():
    assert [f.id for f in INVENTORY_FORM.required] == [
        "pallet_no",
        "label",
        "length_mm",
        "width_mm",
        "height_mm",
        "weight_kg",
        "location_site",
    ]


def test_unique_fields_are_pallet_and_sku():
    for catalog in CATALOGS.values():
        assert {f.id for f in catalog.unique_fields} == {"pallet_no", "sku"}


def test_every_field_has_an_effective_rule():
    for catalog in CATALOGS.values():
        for f in catalog.fields:
            assert isinstance(f.effective_rule, FieldRule)


def test_dimension_rule_and_blank_policy():
    length = INVENTORY_FORM.get("length_mm")
    assert length.effective_rule is FieldRule.NON_NEGATIVE_NUMBER
    assert length.blank_is_error
    status = INVENTORY_FORM.get("status")
    assert status.effective_rule is FieldRule.CHOICE
    assert not status.blank_is_error
    assert INVENTORY_FORM.get("stackability").blank_is_error


def test_default_rule_follows_value_type():
    f = FieldDefinition("x", "X", ValueType.REFERENCE)
    assert f.effective_rule is FieldRule.PRESENCE
    assert FieldDefinition("d", "D", ValueType.DATE).effective_rule is FieldRule.CALENDAR_DATE


def test_catalog_rejects_duplicate_ids():
    f = FieldDefinition("a", "A", required=True)
    with pytest.raises(ValueError):
        FieldCatalog(name="bad", required=(f,), optional=(FieldDefinition("a", "A2"),))


def test_catalog_rejects_required_flag_mismatch():
    with pytest.raises(ValueError):
        FieldCatalog(name="bad", required=(FieldDefinition("a", "A"),), optional=())


def test_get_catalog_unknown():
    assert get_catalog("client_inventory").name == "client_inventory"
    with pytest.raises(UnknownCatalogError):
        get_catalog("nope")


def test_field_definition_is_immutable():
    f = INVENTORY_FORM.get("sku")
    with pytest.raises(AttributeError):
        f.label = "changed"  # type: ignore[misc]
