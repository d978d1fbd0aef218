from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..catalog.forms import FieldCatalog
from ..models.column_mapping import ColumnMapping
from ..models.field_definition import FieldDefinition

"""Auto-mapper: proposes a column -> field mapping from header names.

Matching is a plain case-insensitive substring test: a header matches a field
when the lower-cased header contains the lower-cased field id or label.
Required fields are tried before optional ones; inside each group fields are
ordered by explicit priority (lower first), then catalog position. The first
match wins and unmatched headers stay unmapped. No fuzzy matching.
"""

__all__ = [
    "ordered_candidates",
    "suggest_field",
    "auto_map",
]

logger = logging.getLogger(__name__)


def _ordered(fields: Sequence[FieldDefinition]) -> list[FieldDefinition]:
    indexed = list(enumerate(fields))
    # priority 未指定はカタログ順 (index) を使う
    indexed.sort(key=lambda p: (p[1].priority if p[1].priority is not None else p[0], p[0]))
    return [f for _, f in indexed]


def ordered_candidates(catalog: FieldCatalog) -> list[FieldDefinition]:
    """Fields in the exact order the auto-mapper tests them."""
    return _ordered(catalog.required) + _ordered(catalog.optional)


def _matches(header_lower: str, field: FieldDefinition) -> bool:
    return field.id.lower() in header_lower or field.label.lower() in header_lower


def suggest_field(header: str, catalog: FieldCatalog) -> FieldDefinition | None:
    lowered = header.lower()
    for field in ordered_candidates(catalog):
        if _matches(lowered, field):
            return field
    return None


def auto_map(headers: Iterable[str], catalog: FieldCatalog) -> ColumnMapping:
    """Build the initial mapping for a freshly parsed upload.

    Two headers may be proposed for the same field; that is left to the
    mapping review step, not resolved here.
    """
    mapping = ColumnMapping()
    candidates = ordered_candidates(catalog)
    for header in headers:
        lowered = header.lower()
        for field in candidates:
            if _matches(lowered, field):
                mapping.assign(header, field.id)
                break
    logger.debug(f"auto-mapped {len(mapping)} column(s): {mapping.key()}")
    return mapping
