from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from ..catalog.forms import FieldCatalog
from ..models.column_mapping import ColumnMapping
from ..models.existing_values import ExistingValueSnapshot
from ..models.row_data import ParsedRow, cell_text

"""Existing-value check: which batch values are already persisted.

The lookup is the only blocking step of the engine. It is batched per upload:
collect_candidates() gathers every distinct trimmed non-empty value of each
mapped unique field, and run_existing_check() asks the lookup once per field
(the lookup itself may chunk large candidate lists), never once per row.
"""

__all__ = [
    "ExistingLookupError",
    "ExistingValueLookup",
    "collect_candidates",
    "run_existing_check",
]

logger = logging.getLogger(__name__)


class ExistingLookupError(Exception):
    """Raised when the storage lookup for existing values fails."""


class ExistingValueLookup(Protocol):
    """Storage collaborator: given candidate values, return those that exist."""

    def find_existing(self, field_id: str, candidates: Sequence[str]) -> set[str]:
        ...


def collect_candidates(
    rows: Iterable[ParsedRow], mapping: ColumnMapping, catalog: FieldCatalog
) -> dict[str, tuple[str, ...]]:
    """Distinct trimmed non-empty values per mapped unique field, in row order."""
    row_list = list(rows)
    out: dict[str, tuple[str, ...]] = {}
    for f in catalog.unique_fields:
        columns = mapping.columns_for(f.id)
        if not columns:
            continue
        seen: dict[str, None] = {}
        for row in row_list:
            for column in columns:
                value = cell_text(row.get(column))
                if value:
                    seen.setdefault(value, None)
        out[f.id] = tuple(seen)
    return out


def run_existing_check(
    lookup: ExistingValueLookup,
    candidates: dict[str, tuple[str, ...]],
    version: int = 0,
) -> ExistingValueSnapshot:
    """Query the lookup for every field and freeze the answers.

    Values returned by the lookup that were not asked for are ignored.

    Raises:
        ExistingLookupError: lookup failure (wrapped if not already one)
    """
    existing: dict[str, set[str]] = {}
    for field_id, values in candidates.items():
        if not values:
            existing[field_id] = set()
            continue
        try:
            found = lookup.find_existing(field_id, list(values))
        except ExistingLookupError:
            raise
        except Exception as e:
            raise ExistingLookupError(f"existing-value lookup failed for '{field_id}': {e}") from e
        asked = set(values)
        existing[field_id] = {str(v).strip() for v in found} & asked
        logger.debug(f"existing check {field_id}: {len(existing[field_id])}/{len(values)} already stored")
    return ExistingValueSnapshot.build(existing, checked=candidates, version=version)
