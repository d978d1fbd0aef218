from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from ..catalog.forms import FieldCatalog
from ..models.column_mapping import ColumnMapping
from ..models.existing_values import ExistingValueSnapshot
from ..models.import_result import ImportResults, ImportStep
from ..models.row_data import CellValue, ParsedSheet
from ..models.validation import ValidationReport
from ..parsing.csv_parser import parse_csv_text
from .auto_mapper import auto_map
from .existing_check import ExistingLookupError, ExistingValueLookup, run_existing_check
from .field_validator import ValidationOptions
from .preview import PreviewModel

"""Import session: the upload → mapping_review → preview → importing → complete
flow around one PreviewModel.

The session owns the existing-value check bookkeeping. Every check is tagged
with the generation of the batch it was started for; reset/back/re-upload bump
the generation, so a result that arrives for an abandoned batch is dropped
instead of being merged into the new one. The import gate (can_import) needs:
preview step, no check in flight or failed, a snapshot covering the current
values and a valid report.
"""

__all__ = [
    "ExistingCheckRequest",
    "ImportExecutor",
    "ImportSession",
    "InvalidTransitionError",
]

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when an action is not allowed in the current step."""


class ImportExecutor(Protocol):
    """External collaborator committing accepted rows to storage."""

    def execute(self, rows: list[dict[str, CellValue]]) -> ImportResults:
        ...


@dataclass(frozen=True)
class ExistingCheckRequest:
    generation: int
    candidates: dict[str, tuple[str, ...]]


_TRANSITIONS: dict[ImportStep, frozenset[ImportStep]] = {
    ImportStep.UPLOAD: frozenset({ImportStep.MAPPING_REVIEW}),
    ImportStep.MAPPING_REVIEW: frozenset({ImportStep.PREVIEW, ImportStep.UPLOAD}),
    ImportStep.PREVIEW: frozenset({ImportStep.IMPORTING, ImportStep.UPLOAD}),
    ImportStep.IMPORTING: frozenset({ImportStep.COMPLETE}),
    ImportStep.COMPLETE: frozenset(),
}


class ImportSession:
    def __init__(self, catalog: FieldCatalog, *, options: ValidationOptions | None = None) -> None:
        self.catalog = catalog
        self.options = options or ValidationOptions()
        self.step = ImportStep.UPLOAD
        self.preview: PreviewModel | None = None
        self.results: ImportResults | None = None
        self._generation = 0
        self._pending: ExistingCheckRequest | None = None
        self._check_error: str | None = None

    # --- transitions --------------------------------------------------------

    def _move(self, target: ImportStep) -> None:
        if target not in _TRANSITIONS[self.step]:
            raise InvalidTransitionError(f"cannot go from {self.step.value} to {target.value}")
        logger.debug(f"import step {self.step.value} -> {target.value}")
        self.step = target

    def _require(self, *steps: ImportStep) -> None:
        if self.step not in steps:
            allowed = "/".join(s.value for s in steps)
            raise InvalidTransitionError(f"action requires step {allowed}, current step is {self.step.value}")

    def _require_preview(self) -> PreviewModel:
        if self.preview is None:  # pragma: no cover - guarded by step checks
            raise InvalidTransitionError("no batch uploaded")
        return self.preview

    def upload(self, text: str, source: str | None = None) -> ColumnMapping:
        """Parse raw CSV text and auto-map it; structural errors propagate."""
        return self.upload_sheet(parse_csv_text(text, source=source))

    def upload_sheet(self, sheet: ParsedSheet) -> ColumnMapping:
        self._require(ImportStep.UPLOAD)
        mapping = auto_map(sheet.headers, self.catalog)
        self.preview = PreviewModel(sheet, mapping, self.catalog, options=self.options)
        self._new_generation()
        self._move(ImportStep.MAPPING_REVIEW)
        logger.info(
            f"loaded {len(sheet.rows)} rows with {len(sheet.headers)} columns, "
            f"auto-mapped {len(mapping)} column(s)"
        )
        return mapping

    def remap(self, csv_column: str, field_id: str | None) -> None:
        self._require(ImportStep.MAPPING_REVIEW, ImportStep.PREVIEW)
        self._require_preview().remap(csv_column, field_id)

    def confirm_mapping(self) -> None:
        self._require(ImportStep.MAPPING_REVIEW)
        if len(self._require_preview().mapping) == 0:
            raise InvalidTransitionError("map at least one column before previewing")
        self._move(ImportStep.PREVIEW)

    def back(self) -> None:
        """Abandon the batch and return to the upload step."""
        self._require(ImportStep.MAPPING_REVIEW, ImportStep.PREVIEW)
        self._discard_batch()
        self._move(ImportStep.UPLOAD)

    def reset(self) -> None:
        """Abandon any batch; allowed until the executor has been invoked."""
        self._require(ImportStep.UPLOAD, ImportStep.MAPPING_REVIEW, ImportStep.PREVIEW)
        self._discard_batch()
        self.step = ImportStep.UPLOAD

    def _discard_batch(self) -> None:
        self.preview = None
        self._new_generation()

    def _new_generation(self) -> None:
        self._generation += 1
        if self._pending is not None:
            logger.debug(f"in-flight existing check (generation {self._pending.generation}) abandoned")
        self._pending = None
        self._check_error = None

    # --- editing ------------------------------------------------------------

    def edit_cell(self, row_index: int, csv_column: str, new_value: CellValue) -> None:
        self._require(ImportStep.PREVIEW)
        self._require_preview().edit_cell(row_index, csv_column, new_value)

    def reset_edits(self) -> None:
        self._require(ImportStep.PREVIEW)
        self._require_preview().reset_edits()

    def validate(self) -> ValidationReport:
        self._require(ImportStep.MAPPING_REVIEW, ImportStep.PREVIEW)
        return self._require_preview().validate()

    # --- existing-value check -----------------------------------------------

    @property
    def is_checking(self) -> bool:
        return self._pending is not None

    @property
    def check_error(self) -> str | None:
        return self._check_error

    def begin_existing_check(self) -> ExistingCheckRequest:
        """Mark a check in flight for the current values of the batch.

        A newer request supersedes an older one still in flight.
        """
        self._require(ImportStep.MAPPING_REVIEW, ImportStep.PREVIEW)
        request = ExistingCheckRequest(
            generation=self._generation,
            candidates=self._require_preview().candidates(),
        )
        self._pending = request
        self._check_error = None
        return request

    def complete_existing_check(
        self, request: ExistingCheckRequest, found: Mapping[str, Iterable[str]]
    ) -> bool:
        """Apply a lookup result; False when the result is stale and dropped."""
        if self._pending is not request or request.generation != self._generation:
            logger.debug(f"stale existing check result dropped (generation {request.generation})")
            return False
        snapshot = ExistingValueSnapshot.build(found, checked=request.candidates, version=request.generation)
        self._require_preview().replace_snapshot(snapshot)
        self._pending = None
        return True

    def fail_existing_check(self, request: ExistingCheckRequest, error: str) -> None:
        """Record a failed lookup; the previous snapshot stays (and stays stale)."""
        if self._pending is not request:
            return
        self._pending = None
        self._check_error = error
        logger.warning(f"existing value check failed: {error}")

    def check_existing(self, lookup: ExistingValueLookup) -> bool:
        """Synchronous begin → lookup → complete. Returns False on failure."""
        request = self.begin_existing_check()
        try:
            snapshot = run_existing_check(lookup, request.candidates, version=request.generation)
        except ExistingLookupError as e:
            self.fail_existing_check(request, str(e))
            return False
        return self.complete_existing_check(request, snapshot.existing)

    # --- import -------------------------------------------------------------

    @property
    def can_import(self) -> bool:
        if self.step is not ImportStep.PREVIEW or self.preview is None:
            return False
        if self.is_checking or self._check_error is not None:
            return False
        if not self.preview.snapshot_is_current():
            return False
        return self.preview.validate().is_valid

    def start_import(self, executor: ImportExecutor) -> ImportResults:
        """Hand the accepted rows to the executor; ends in the complete step."""
        self._require(ImportStep.PREVIEW)
        if self.is_checking:
            raise InvalidTransitionError("existing value check still in progress")
        if not self.can_import:
            raise InvalidTransitionError("batch is not valid for import")
        preview = self._require_preview()
        rows = preview.mapped_rows()
        self._move(ImportStep.IMPORTING)
        logger.info(f"importing {len(rows)} row(s)")
        try:
            results = executor.execute(rows)
        except Exception as e:
            # 実行後は preview に戻らない (importing は前進のみ)
            logger.error(f"import executor failed: {e}")
            results = ImportResults(success=0, failed=len(rows), errors=[str(e)])
        self.results = results
        self._move(ImportStep.COMPLETE)
        logger.info(f"import complete: success={results.success} failed={results.failed}")
        return results

    def summary(self) -> dict[str, Any]:
        """Plain dict of the session state for host UIs / logs."""
        report = self.preview.validate() if self.preview is not None else None
        return {
            "step": self.step.value,
            "rows": len(self.preview.rows) if self.preview is not None else 0,
            "is_valid": report.is_valid if report is not None else False,
            "is_checking": self.is_checking,
            "can_import": self.can_import,
            "check_error": self._check_error,
        }
