from __future__ import annotations

import copy
import logging
from dataclasses import replace
from datetime import date
from typing import Any

from ..catalog.forms import FieldCatalog
from ..models.column_mapping import ColumnMapping
from ..models.existing_values import ExistingValueSnapshot
from ..models.row_data import CellValue, ParsedRow, ParsedSheet, cell_text
from ..models.validation import ValidationReport, ValidationStats
from .existing_check import collect_candidates
from .field_validator import ValidationOptions, validate_batch

"""Preview model: the editable, re-validated staging area of one upload.

Holds the parsed rows, a lazily created edited copy (authoritative once any
cell has been edited), the column mapping under review and the current
existing-value snapshot. validate() is the single source of truth the host
consults to enable/disable the import action; it is memoized on
(edit version, mapping key, snapshot version, options) so repeated renders
without changes do not re-run the validator. When past dates are rejected
without a fixed `today`, the current date is resolved into the options, so a
cached report does not outlive the day it was computed for.

Not thread-safe: one instance per import session.
"""

__all__ = [
    "PreviewError",
    "PreviewModel",
]

logger = logging.getLogger(__name__)


class PreviewError(Exception):
    """Raised for edits addressing a row or column that does not exist."""


class PreviewModel:
    def __init__(
        self,
        sheet: ParsedSheet,
        mapping: ColumnMapping,
        catalog: FieldCatalog,
        *,
        existing: ExistingValueSnapshot | None = None,
        options: ValidationOptions | None = None,
    ) -> None:
        self.sheet = sheet
        self.catalog = catalog
        self.options = options or ValidationOptions()
        self._mapping = mapping.copy()
        self._edited: list[ParsedRow] | None = None
        self._existing = existing or ExistingValueSnapshot()
        self._edit_version = 0
        self._snapshot_version = 0
        self._memo_key: tuple[Any, ...] | None = None
        self._memo_report: ValidationReport | None = None

    # --- rows ---------------------------------------------------------------

    @property
    def headers(self) -> list[str]:
        return self.sheet.headers

    @property
    def rows(self) -> list[ParsedRow]:
        """Authoritative rows: the edited copy once it exists."""
        return self._edited if self._edited is not None else self.sheet.rows

    @property
    def has_edits(self) -> bool:
        return self._edited is not None

    def edit_cell(self, row_index: int, csv_column: str, new_value: CellValue) -> None:
        """Overwrite one cell; every other cell and the row order stay as-is."""
        if not 0 <= row_index < len(self.sheet.rows):
            raise PreviewError(f"row index out of range: {row_index}")
        if csv_column not in self.sheet.headers:
            raise PreviewError(f"unknown column: {csv_column!r}")
        if self._edited is None:
            # 初回編集時に行単位でコピー (元の parsed rows は変更しない)
            self._edited = [dict(r) for r in self.sheet.rows]
        if isinstance(new_value, str) and not new_value.strip():
            new_value = None
        self._edited[row_index][csv_column] = new_value
        self._edit_version += 1

    def reset_edits(self) -> None:
        """Discard the edited copy and go back to the parsed rows."""
        if self._edited is not None:
            logger.debug("preview edits discarded")
        self._edited = None
        self._edit_version += 1

    def accepted_rows(self) -> list[ParsedRow]:
        """Parsed rows overlaid with edits (independent copy)."""
        return copy.deepcopy(self.rows)

    # --- mapping ------------------------------------------------------------

    @property
    def mapping(self) -> ColumnMapping:
        return self._mapping.copy()

    def remap(self, csv_column: str, field_id: str | None) -> None:
        if csv_column not in self.sheet.headers:
            raise PreviewError(f"unknown column: {csv_column!r}")
        if field_id and self.catalog.get(field_id) is None:
            raise PreviewError(f"unknown field: {field_id!r}")
        self._mapping.assign(csv_column, field_id)

    def set_mapping(self, mapping: ColumnMapping) -> None:
        self._mapping = mapping.copy()

    def mapped_rows(self) -> list[dict[str, CellValue]]:
        """Rows keyed by field id, ready for the import executor.

        When two columns are mapped to one field the later mapped column wins.
        """
        out: list[dict[str, CellValue]] = []
        pairs = self._mapping.pairs()
        for row in self.rows:
            transformed: dict[str, CellValue] = {}
            for pair in pairs:
                transformed[pair.field_id] = row.get(pair.csv_column)
            out.append(transformed)
        return out

    # --- existing values ----------------------------------------------------

    @property
    def existing(self) -> ExistingValueSnapshot:
        return self._existing

    def replace_snapshot(self, snapshot: ExistingValueSnapshot) -> None:
        """Swap in a fresh snapshot; the next validate() uses it."""
        self._existing = snapshot
        self._snapshot_version += 1

    def candidates(self) -> dict[str, tuple[str, ...]]:
        return collect_candidates(self.rows, self._mapping, self.catalog)

    def snapshot_is_current(self) -> bool:
        """Snapshot was taken for every unique value currently in the batch."""
        return self._existing.covers(self.candidates())

    # --- validation ---------------------------------------------------------

    def validate(self) -> ValidationReport:
        options = self.options
        if options.reject_past_dates and options.today is None:
            options = replace(options, today=date.today())
        key = (self._edit_version, self._mapping.key(), self._snapshot_version, options)
        if self._memo_key == key and self._memo_report is not None:
            return self._memo_report
        report = validate_batch(self.rows, self._mapping, self.catalog, self._existing, options)
        self._memo_key = key
        self._memo_report = report
        return report

    @property
    def is_valid(self) -> bool:
        return self.validate().is_valid

    def stats(self) -> ValidationStats:
        report = self.validate()
        invalid = len(report.invalid_rows)
        total = len(self.rows)
        return ValidationStats(
            total_rows=total,
            valid_rows=total - invalid,
            invalid_rows=invalid,
            mapped_columns=len(self._mapping),
            total_columns=len(self.sheet.headers),
            missing_required=[f.label for f in report.missing_required_mappings],
            unique_clients=self._distinct("client_email"),
            unique_projects=self._distinct("project_name") or self._distinct("project_id"),
        )

    def _distinct(self, field_id: str) -> int:
        columns = self._mapping.columns_for(field_id)
        if not columns:
            return 0
        values = set()
        for row in self.rows:
            for column in columns:
                text = cell_text(row.get(column)).lower()
                if text:
                    values.add(text)
        return len(values)
