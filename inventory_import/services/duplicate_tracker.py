from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from ..catalog.forms import FieldCatalog
from ..models.column_mapping import ColumnMapping
from ..models.existing_values import ExistingValueSnapshot
from ..models.row_data import ParsedRow, cell_text

"""Duplicate tracker for unique-constrained fields (pallet number, SKU).

For every mapped column of a unique field:
1. in-batch: trimmed non-empty value -> row indices; any value shared by more
   than one row marks all of those rows
2. in-storage: every row whose value is in the field's existing set is marked,
   independently of (1); a row can be in both sets

Empty values never collide. Columns are tracked independently, so a field
mapped from two columns does not compare values across those columns.
"""

__all__ = [
    "ColumnDuplicates",
    "DuplicateReport",
    "as_snapshot",
    "find_duplicates",
]


@dataclass(frozen=True)
class ColumnDuplicates:
    field_id: str
    column: str
    in_batch: frozenset[int] = frozenset()
    in_storage: frozenset[int] = frozenset()

    @property
    def rows(self) -> frozenset[int]:
        return self.in_batch | self.in_storage


@dataclass(frozen=True)
class DuplicateReport:
    columns: tuple[ColumnDuplicates, ...] = field(default_factory=tuple)

    def for_column(self, column: str) -> ColumnDuplicates | None:
        for c in self.columns:
            if c.column == column:
                return c
        return None

    def rows_for(self, field_id: str) -> frozenset[int]:
        """All offending row indices of one unique field (union over its columns)."""
        out: frozenset[int] = frozenset()
        for c in self.columns:
            if c.field_id == field_id:
                out = out | c.rows
        return out

    def in_batch_for(self, field_id: str) -> frozenset[int]:
        out: frozenset[int] = frozenset()
        for c in self.columns:
            if c.field_id == field_id:
                out = out | c.in_batch
        return out

    def in_storage_for(self, field_id: str) -> frozenset[int]:
        out: frozenset[int] = frozenset()
        for c in self.columns:
            if c.field_id == field_id:
                out = out | c.in_storage
        return out

    def by_field(self) -> dict[str, frozenset[int]]:
        """One offending row set per tracked unique field."""
        out: dict[str, frozenset[int]] = {}
        for c in self.columns:
            out[c.field_id] = out.get(c.field_id, frozenset()) | c.rows
        return out


def as_snapshot(
    existing: ExistingValueSnapshot | Mapping[str, Iterable[str]] | None,
) -> ExistingValueSnapshot:
    if existing is None:
        return ExistingValueSnapshot()
    if isinstance(existing, ExistingValueSnapshot):
        return existing
    return ExistingValueSnapshot.build(existing)


def _track_column(
    rows: Sequence[ParsedRow], field_id: str, column: str, existing: frozenset[str]
) -> ColumnDuplicates:
    value_to_rows: dict[str, list[int]] = {}
    in_storage: set[int] = set()
    for idx, row in enumerate(rows):
        value = cell_text(row.get(column))
        if not value:
            continue
        value_to_rows.setdefault(value, []).append(idx)
        if value in existing:
            in_storage.add(idx)

    in_batch: set[int] = set()
    for indices in value_to_rows.values():
        if len(indices) > 1:
            in_batch.update(indices)
    return ColumnDuplicates(
        field_id=field_id,
        column=column,
        in_batch=frozenset(in_batch),
        in_storage=frozenset(in_storage),
    )


def find_duplicates(
    rows: Sequence[ParsedRow],
    mapping: ColumnMapping,
    catalog: FieldCatalog,
    existing: ExistingValueSnapshot | Mapping[str, Iterable[str]] | None = None,
) -> DuplicateReport:
    snapshot = as_snapshot(existing)
    tracked: list[ColumnDuplicates] = []
    for f in catalog.unique_fields:
        for column in mapping.columns_for(f.id):
            tracked.append(_track_column(rows, f.id, column, snapshot.values_for(f.id)))
    return DuplicateReport(columns=tuple(tracked))
