"""Static field catalogs, one per import form variant."""

from .forms import (
    CATALOGS,
    CLIENT_INVENTORY_FORM,
    INVENTORY_FORM,
    STACKABILITY_OPTIONS,
    STATUS_OPTIONS,
    FieldCatalog,
    UnknownCatalogError,
    get_catalog,
)

__all__ = [
    "CATALOGS",
    "CLIENT_INVENTORY_FORM",
    "INVENTORY_FORM",
    "STACKABILITY_OPTIONS",
    "STATUS_OPTIONS",
    "FieldCatalog",
    "UnknownCatalogError",
    "get_catalog",
]
