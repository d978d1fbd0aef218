from __future__ import annotations

from dataclasses import dataclass

from ..models.field_definition import FieldDefinition, FieldRule, ValueType

"""Field catalogs for the import form variants.

Each variant is an immutable FieldCatalog (required + optional definitions).
Catalog order is the auto-mapper's default tie-break; explicit priority values
override it where a more specific field must win over a broader one.
"""

__all__ = [
    "FieldCatalog",
    "UnknownCatalogError",
    "STACKABILITY_OPTIONS",
    "STATUS_OPTIONS",
    "INVENTORY_FORM",
    "CLIENT_INVENTORY_FORM",
    "CATALOGS",
    "get_catalog",
]

STACKABILITY_OPTIONS = ("stackable", "non_stackable", "top_only", "bottom_only")
STATUS_OPTIONS = ("in_storage", "reserved", "on_truck", "onsite", "returned")


class UnknownCatalogError(KeyError):
    """Raised when a form variant name is not registered."""


@dataclass(frozen=True)
class FieldCatalog:
    name: str
    required: tuple[FieldDefinition, ...]
    optional: tuple[FieldDefinition, ...]

    def __post_init__(self) -> None:
        ids = [f.id for f in self.fields]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"catalog '{self.name}' defines duplicate field ids: {dupes}")
        for f in self.required:
            if not f.required:
                raise ValueError(f"catalog '{self.name}': field '{f.id}' listed as required but required=False")
        for f in self.optional:
            if f.required:
                raise ValueError(f"catalog '{self.name}': field '{f.id}' listed as optional but required=True")

    @property
    def fields(self) -> tuple[FieldDefinition, ...]:
        return self.required + self.optional

    @property
    def unique_fields(self) -> tuple[FieldDefinition, ...]:
        return tuple(f for f in self.fields if f.unique)

    def get(self, field_id: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None


def _dimension(field_id: str, label: str) -> FieldDefinition:
    return FieldDefinition(field_id, label, ValueType.NUMBER, required=True, rule=FieldRule.NON_NEGATIVE_NUMBER)


def _flag(field_id: str, label: str) -> FieldDefinition:
    return FieldDefinition(
        field_id, label, ValueType.BOOLEAN, rule=FieldRule.STRICT_BOOLEAN, allow_blank=False
    )


_ITEM_OPTIONAL: tuple[FieldDefinition, ...] = (
    FieldDefinition("sku", "SKU", ValueType.TEXT, unique=True),
    FieldDefinition("description", "Description", ValueType.TEXT),
    FieldDefinition(
        "inventory_date", "Inventory Date", ValueType.DATE, rule=FieldRule.CALENDAR_DATE, allow_blank=False
    ),
    FieldDefinition("location_aisle", "Aisle", ValueType.TEXT),
    FieldDefinition("location_bay", "Bay", ValueType.TEXT),
    FieldDefinition("location_level", "Level", ValueType.TEXT),
    FieldDefinition("location_notes", "Location Notes", ValueType.TEXT),
    FieldDefinition("quantity", "Quantity", ValueType.NUMBER, rule=FieldRule.NON_NEGATIVE_NUMBER),
    FieldDefinition(
        "stackability",
        "Stackability",
        ValueType.ENUM,
        rule=FieldRule.CHOICE,
        options=STACKABILITY_OPTIONS,
        allow_blank=False,
    ),
    FieldDefinition(
        "top_load_rating_kg", "Top Load Rating (kg)", ValueType.NUMBER, rule=FieldRule.NON_NEGATIVE_NUMBER
    ),
    _flag("orientation_locked", "Orientation Locked"),
    _flag("fragile", "Fragile"),
    _flag("keep_upright", "Keep Upright"),
    FieldDefinition(
        "loading_priority",
        "Loading Priority",
        ValueType.NUMBER,
        rule=FieldRule.POSITIVE_NUMBER,
        allow_blank=False,
    ),
    FieldDefinition("status", "Status", ValueType.ENUM, rule=FieldRule.CHOICE, options=STATUS_OPTIONS),
)


INVENTORY_FORM = FieldCatalog(
    name="inventory",
    required=(
        FieldDefinition("pallet_no", "Pallet", ValueType.TEXT, required=True, unique=True),
        FieldDefinition("label", "Item Label", ValueType.TEXT, required=True),
        _dimension("length_mm", "Length (mm)"),
        _dimension("width_mm", "Width (mm)"),
        _dimension("height_mm", "Height (mm)"),
        _dimension("weight_kg", "Weight (kg)"),
        FieldDefinition(
            "location_site", "Warehouse Site", ValueType.TEXT, required=True, rule=FieldRule.ADDRESS
        ),
    ),
    optional=(
        FieldDefinition("project_id", "Project", ValueType.REFERENCE),
        *_ITEM_OPTIONAL,
    ),
)


CLIENT_INVENTORY_FORM = FieldCatalog(
    name="client_inventory",
    required=(
        FieldDefinition("client_name", "Client Name", ValueType.TEXT, required=True, rule=FieldRule.NAME),
        FieldDefinition("client_email", "Client Email", ValueType.TEXT, required=True, rule=FieldRule.EMAIL),
        FieldDefinition("label", "Item Label", ValueType.TEXT, required=True),
        _dimension("length_mm", "Length (mm)"),
        _dimension("width_mm", "Width (mm)"),
        _dimension("height_mm", "Height (mm)"),
        _dimension("weight_kg", "Weight (kg)"),
        FieldDefinition(
            "location_site", "Warehouse Site", ValueType.TEXT, required=True, rule=FieldRule.ADDRESS
        ),
    ),
    optional=(
        FieldDefinition("project_name", "Project", ValueType.TEXT),
        FieldDefinition("pallet_no", "Pallet Number", ValueType.TEXT, unique=True),
        *_ITEM_OPTIONAL,
    ),
)


CATALOGS: dict[str, FieldCatalog] = {
    INVENTORY_FORM.name: INVENTORY_FORM,
    CLIENT_INVENTORY_FORM.name: CLIENT_INVENTORY_FORM,
}


def get_catalog(name: str) -> FieldCatalog:
    try:
        return CATALOGS[name]
    except KeyError as e:
        raise UnknownCatalogError(f"unknown import form: {name!r} (known: {sorted(CATALOGS)})") from e
