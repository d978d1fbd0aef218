from __future__ import annotations

from dataclasses import dataclass, field

from .field_definition import FieldDefinition

"""Validation result models.

All of these are derived values: they are recomputed from
(rows, mapping, existing-value snapshot) on every validation pass and never
stored independently of those inputs.
"""

__all__ = [
    "CellIssue",
    "CellValidation",
    "RowValidationError",
    "ValidationReport",
    "ValidationStats",
]


@dataclass(frozen=True)
class CellValidation:
    """Validity of one mapped cell (row_index is 0-based)."""
    row_index: int
    field_id: str
    column: str
    valid: bool


@dataclass(frozen=True)
class CellIssue:
    """One failed check on one cell.

    code is an UPPER_SNAKE classification (REQUIRED, INVALID_NUMBER,
    NEGATIVE_NUMBER, EXISTS_IN_DB, DUPLICATE_IN_CSV, ...) used by the error log.
    """
    field_id: str
    column: str
    code: str
    message: str


@dataclass(frozen=True)
class RowValidationError:
    """All issues collected for one row (exhaustive, not fail-fast)."""
    row_index: int
    issues: tuple[CellIssue, ...]

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(i.message for i in self.issues)

    @property
    def row_number(self) -> int:
        """1-based row number used in user facing messages ("row 7")."""
        return self.row_index + 1


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of one validation pass over a batch.

    is_valid is True iff no required field is left unmapped AND every row has
    zero messages.
    """
    missing_required_mappings: tuple[FieldDefinition, ...] = ()
    row_errors: tuple[RowValidationError, ...] = ()
    cells: tuple[CellValidation, ...] = ()

    @property
    def is_valid(self) -> bool:
        if self.missing_required_mappings:
            return False
        return all(not r.messages for r in self.row_errors)

    @property
    def invalid_rows(self) -> set[int]:
        return {r.row_index for r in self.row_errors if r.messages}

    def errors_for_row(self, row_index: int) -> tuple[str, ...]:
        for r in self.row_errors:
            if r.row_index == row_index:
                return r.messages
        return ()

    def is_cell_valid(self, row_index: int, column: str) -> bool:
        """Unmapped or unchecked cells count as valid."""
        for c in self.cells:
            if c.row_index == row_index and c.column == column:
                return c.valid
        return True


@dataclass(frozen=True)
class ValidationStats:
    """Aggregate counters for the preview / validate screens."""
    total_rows: int
    valid_rows: int
    invalid_rows: int
    mapped_columns: int
    total_columns: int
    missing_required: list[str] = field(default_factory=list)  # labels
    unique_clients: int = 0
    unique_projects: int = 0

    @property
    def success_rate(self) -> int:
        """Percentage of valid rows, rounded (0 for an empty batch)."""
        if self.total_rows == 0:
            return 0
        return round(self.valid_rows / self.total_rows * 100)
