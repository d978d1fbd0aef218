from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date

import pandas as pd

from ..catalog.forms import FieldCatalog
from ..models.column_mapping import ColumnMapping
from ..models.existing_values import ExistingValueSnapshot
from ..models.field_definition import FieldDefinition, FieldRule
from ..models.row_data import CellValue, ParsedRow, cell_text
from ..models.validation import CellIssue, CellValidation, RowValidationError, ValidationReport
from .duplicate_tracker import DuplicateReport, as_snapshot, find_duplicates

"""Field validator: per-cell and per-row validity of an uploaded batch.

validate_batch() is a pure function of (rows, mapping, catalog, existing
snapshot, options). It never raises for bad data; every problem becomes a
CellIssue and the report collects all of them:

- each required field with no mapped column is reported once at batch level
- unmapped fields are not validated at all
- a blank cell of a required (or allow_blank=False) field yields REQUIRED and
  no further checks for that cell
- otherwise the field's FieldRule handler runs; handlers may yield several
  issues, nothing is short-circuited across fields
- unique fields additionally get at most one duplicate issue per cell:
  EXISTS_IN_DB takes priority over DUPLICATE_IN_CSV
"""

__all__ = [
    "MESSAGES",
    "ValidationOptions",
    "check_cell",
    "validate_batch",
]

logger = logging.getLogger(__name__)


MESSAGES: dict[str, str] = {
    "REQUIRED": "{label} is required",
    "INVALID_NUMBER": "{label} must be a valid number",
    "NEGATIVE_NUMBER": "{label} cannot be negative",
    "NOT_POSITIVE": "{label} must be greater than 0",
    "INVALID_CHOICE": "{label} must be one of: {options}",
    "INVALID_BOOLEAN": "{label} must be TRUE or FALSE",
    "INVALID_DATE": "{label} must be a valid date",
    "PAST_DATE": "{label} cannot be in the past",
    "ADDRESS_TOO_SHORT": "{label} must be at least {min_length} characters",
    "INVALID_EMAIL": "{label} must be a valid email address",
    "NAME_TOO_SHORT": "{label} must be at least {min_length} characters",
    "EXISTS_IN_DB": '{label} already exists in database: "{value}"',
    "DUPLICATE_IN_CSV": '{label} is a duplicate in CSV: "{value}"',
}

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationOptions:
    """Tunables of the rule handlers. Hashable (part of the memo key)."""
    reject_past_dates: bool = False
    today: date | None = None  # None -> date.today() at validation time
    min_address_length: int = 5
    min_name_length: int = 2


def _issue(field: FieldDefinition, column: str, code: str, **extra: object) -> CellIssue:
    message = MESSAGES[code].format(label=field.label, **extra)
    return CellIssue(field_id=field.id, column=column, code=code, message=message)


def _parse_number(text: str) -> float | None:
    if not _NUMBER_RE.match(text):
        return None
    return float(text)


def _parse_date(text: str) -> date | None:
    # "now" / "today" などのキーワードは日付として扱わない
    if not any(ch.isdigit() for ch in text):
        return None
    try:
        ts = pd.Timestamp(text)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.date()


# --- rule handlers -----------------------------------------------------------
# Each handler receives a non-blank trimmed value and returns (code, extra) pairs.

_Failures = list[tuple[str, dict[str, object]]]
_Handler = Callable[[FieldDefinition, str, ValidationOptions], _Failures]


def _check_presence(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    return []


def _check_non_negative(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    number = _parse_number(text)
    if number is None:
        return [("INVALID_NUMBER", {})]
    if number < 0:
        return [("NEGATIVE_NUMBER", {})]
    return []


def _check_positive(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    number = _parse_number(text)
    if number is None:
        return [("INVALID_NUMBER", {})]
    if number <= 0:
        return [("NOT_POSITIVE", {})]
    return []


def _check_choice(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    options = {o.lower() for o in field.options}
    if text.lower() not in options:
        return [("INVALID_CHOICE", {"options": ", ".join(field.options)})]
    return []


def _check_strict_boolean(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    if text.upper() not in ("TRUE", "FALSE"):
        return [("INVALID_BOOLEAN", {})]
    return []


def _check_calendar_date(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    parsed = _parse_date(text)
    if parsed is None:
        return [("INVALID_DATE", {})]
    if opts.reject_past_dates:
        today = opts.today or date.today()
        if parsed < today:
            return [("PAST_DATE", {})]
    return []


def _check_address(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    if len(text) < opts.min_address_length:
        return [("ADDRESS_TOO_SHORT", {"min_length": opts.min_address_length})]
    return []


def _check_email(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    if not _EMAIL_RE.match(text):
        return [("INVALID_EMAIL", {})]
    return []


def _check_name(field: FieldDefinition, text: str, opts: ValidationOptions) -> _Failures:
    if len(text) < opts.min_name_length:
        return [("NAME_TOO_SHORT", {"min_length": opts.min_name_length})]
    return []


_HANDLERS: dict[FieldRule, _Handler] = {
    FieldRule.PRESENCE: _check_presence,
    FieldRule.NON_NEGATIVE_NUMBER: _check_non_negative,
    FieldRule.POSITIVE_NUMBER: _check_positive,
    FieldRule.CHOICE: _check_choice,
    FieldRule.STRICT_BOOLEAN: _check_strict_boolean,
    FieldRule.CALENDAR_DATE: _check_calendar_date,
    FieldRule.ADDRESS: _check_address,
    FieldRule.EMAIL: _check_email,
    FieldRule.NAME: _check_name,
}

_unhandled = set(FieldRule) - set(_HANDLERS)
if _unhandled:  # pragma: no cover - guards new FieldRule members
    raise RuntimeError(f"field rules without a validator handler: {sorted(r.value for r in _unhandled)}")


def check_cell(
    field: FieldDefinition,
    value: CellValue,
    column: str | None = None,
    options: ValidationOptions | None = None,
) -> list[CellIssue]:
    """Type/domain checks for one cell, without duplicate detection."""
    opts = options or ValidationOptions()
    col = column if column is not None else field.id
    text = cell_text(value)
    if not text:
        if field.blank_is_error:
            return [_issue(field, col, "REQUIRED")]
        return []
    handler = _HANDLERS[field.effective_rule]
    return [_issue(field, col, code, **extra) for code, extra in handler(field, text, opts)]


def _duplicate_issue(
    field: FieldDefinition, column: str, row_index: int, text: str, duplicates: DuplicateReport
) -> CellIssue | None:
    tracked = duplicates.for_column(column)
    if tracked is None or not text:
        return None
    if row_index in tracked.in_storage:
        return _issue(field, column, "EXISTS_IN_DB", value=text)
    if row_index in tracked.in_batch:
        return _issue(field, column, "DUPLICATE_IN_CSV", value=text)
    return None


def validate_batch(
    rows: Sequence[ParsedRow],
    mapping: ColumnMapping,
    catalog: FieldCatalog,
    existing: ExistingValueSnapshot | Mapping[str, Iterable[str]] | None = None,
    options: ValidationOptions | None = None,
) -> ValidationReport:
    """Validate every mapped cell of every row.

    Args:
        rows: Current (possibly edited) rows, in upload order
        mapping: Column -> field id mapping under review
        catalog: Field catalog of the import form
        existing: Frozen existing-value snapshot (or plain field -> values)
        options: Rule tunables

    Returns:
        ValidationReport; rows without issues are not listed in row_errors
    """
    opts = options or ValidationOptions()
    snapshot = as_snapshot(existing)

    missing = tuple(f for f in catalog.required if not mapping.is_mapped(f.id))

    mapped: list[tuple[str, FieldDefinition]] = []
    for pair in mapping.pairs():
        field = catalog.get(pair.field_id)
        if field is None:
            logger.debug(f"column '{pair.csv_column}' mapped to unknown field '{pair.field_id}', skipped")
            continue
        mapped.append((pair.csv_column, field))

    duplicates = find_duplicates(rows, mapping, catalog, snapshot)

    row_errors: list[RowValidationError] = []
    cells: list[CellValidation] = []
    for idx, row in enumerate(rows):
        row_issues: list[CellIssue] = []
        for column, field in mapped:
            value = row.get(column)
            issues = check_cell(field, value, column, opts)
            if field.unique:
                dup = _duplicate_issue(field, column, idx, cell_text(value), duplicates)
                if dup is not None:
                    issues.append(dup)
            cells.append(CellValidation(row_index=idx, field_id=field.id, column=column, valid=not issues))
            row_issues.extend(issues)
        if row_issues:
            row_errors.append(RowValidationError(row_index=idx, issues=tuple(row_issues)))

    return ValidationReport(
        missing_required_mappings=missing,
        row_errors=tuple(row_errors),
        cells=tuple(cells),
    )
