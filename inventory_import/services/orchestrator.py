from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..catalog.forms import FieldCatalog, get_catalog
from ..logging.error_log import ErrorLogBuffer, file_level_record, records_for_report
from ..models.config_models import ImportConfig
from ..models.processing_result import FileStat, ProcessingResult
from ..parsing.csv_parser import CsvStructureError
from ..parsing.spreadsheet import SUPPORTED_SUFFIXES, SpreadsheetReadError, read_spreadsheet
from .auto_mapper import auto_map
from .existing_check import ExistingLookupError, ExistingValueLookup, run_existing_check
from .field_validator import ValidationOptions
from .preview import PreviewModel
from .progress import ProgressTracker

"""Batch validation of every upload in the configured source directory.

For each .csv / .xlsx file: parse → auto-map → existing-value check (when a
lookup is available) → validate. Nothing is imported; the run reports which
files would pass the import gate, buffers row-level problems in the JSON-lines
error log and returns the aggregated ProcessingResult for the SUMMARY line.

File status:
- valid: report is valid and the existing check ran (or was not needed)
- invalid: mapping/row problems, or the existing check failed
- failed: unreadable file or structural error (< 2 non-blank lines)
"""

__all__ = [
    "FileOutcome",
    "ProcessingError",
    "process_all",
    "scan_upload_files",
    "validate_file",
]

logger = logging.getLogger(__name__)

STATUS_VALID = "valid"
STATUS_INVALID = "invalid"
STATUS_FAILED = "failed"


class ProcessingError(Exception):
    """Fatal error that prevents the whole run (e.g. missing directory)."""


def scan_upload_files(directory: Path) -> list[Path]:
    """Supported upload files in directory (non-recursive, sorted by name).

    Raises:
        ProcessingError: directory missing, not a directory, or unreadable
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    try:
        return sorted(
            (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES),
            key=lambda p: p.name,
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


@dataclass(frozen=True)
class FileOutcome:
    """Result of validating one file (also used by --inspect-data)."""
    stat: FileStat
    preview: PreviewModel | None = None


def _existing_check_status(
    preview: PreviewModel, lookup: ExistingValueLookup | None, file_name: str, error_log: ErrorLogBuffer
) -> str:
    candidates = preview.candidates()
    if not candidates:
        return "not_needed"
    if lookup is None:
        logger.debug(f"{file_name}: no storage lookup, existing-value check skipped")
        return "skipped"
    try:
        snapshot = run_existing_check(lookup, candidates)
    except ExistingLookupError as e:
        logger.warning(f"{file_name}: existing value check failed: {e}")
        error_log.append(file_level_record(file_name, "EXISTING_CHECK_ERROR", str(e)))
        return "failed"
    preview.replace_snapshot(snapshot)
    return "done"


def validate_file(
    file_path: Path,
    catalog: FieldCatalog,
    options: ValidationOptions,
    error_log: ErrorLogBuffer,
    lookup: ExistingValueLookup | None = None,
) -> FileOutcome:
    """Validate one upload; never raises for bad file content."""
    start = datetime.now(UTC)
    name = file_path.name

    def _elapsed() -> float:
        return (datetime.now(UTC) - start).total_seconds()

    try:
        sheet = read_spreadsheet(file_path)
    except (CsvStructureError, SpreadsheetReadError) as e:
        error_type = "STRUCTURE_ERROR" if isinstance(e, CsvStructureError) else "READ_ERROR"
        logger.error(f"{name}: {e}")
        error_log.append(file_level_record(name, error_type, str(e)))
        return FileOutcome(
            FileStat(
                file_name=name,
                status=STATUS_FAILED,
                total_rows=0,
                invalid_rows=0,
                skipped_lines=0,
                missing_mappings=[],
                existing_check="skipped",
                elapsed_seconds=_elapsed(),
            )
        )

    for line_no in sheet.skipped_lines:
        error_log.append(
            file_level_record(name, "MALFORMED_LINE", f"line {line_no}: field count does not match header")
        )

    mapping = auto_map(sheet.headers, catalog)
    unmapped = [h for h in sheet.headers if mapping.field_for(h) is None]
    if unmapped:
        logger.debug(f"{name}: unmapped columns {unmapped}")

    preview = PreviewModel(sheet, mapping, catalog, options=options)
    check_status = _existing_check_status(preview, lookup, name, error_log)
    report = preview.validate()
    error_log.extend(records_for_report(name, report))

    valid = report.is_valid and check_status != "failed"
    stats = preview.stats()
    if valid:
        logger.info(f"{name}: {stats.total_rows} rows valid ({stats.mapped_columns}/{stats.total_columns} columns mapped)")
    else:
        logger.warning(
            f"{name}: {stats.invalid_rows}/{stats.total_rows} rows invalid"
            + (f", missing mappings: {', '.join(stats.missing_required)}" if stats.missing_required else "")
        )
    return FileOutcome(
        FileStat(
            file_name=name,
            status=STATUS_VALID if valid else STATUS_INVALID,
            total_rows=stats.total_rows,
            invalid_rows=stats.invalid_rows,
            skipped_lines=len(sheet.skipped_lines),
            missing_mappings=list(stats.missing_required),
            existing_check=check_status,
            elapsed_seconds=_elapsed(),
        ),
        preview,
    )


def process_all(config: ImportConfig, lookup: ExistingValueLookup | None = None) -> ProcessingResult:
    """Validate all uploads in the configured directory.

    Args:
        config: Loaded import configuration
        lookup: Storage lookup for existing values (None = offline mode)

    Returns:
        ProcessingResult with aggregated metrics and per-file stats

    Raises:
        ProcessingError: directory problems or an unknown form
    """
    start_time = datetime.now(UTC)
    try:
        catalog = get_catalog(config.form)
    except KeyError as e:
        raise ProcessingError(f"Invalid configuration: {e}") from e
    options = ValidationOptions(reject_past_dates=config.reject_past_inventory_dates)
    error_log = ErrorLogBuffer()

    file_paths = scan_upload_files(Path(config.source_directory))

    file_stats: list[FileStat] = []
    valid_count = invalid_count = failed_count = 0
    total_rows = invalid_rows = skipped_lines = 0

    with ProgressTracker(len(file_paths)) as progress:
        for file_path in file_paths:
            progress.start_file(file_path)
            stat = validate_file(file_path, catalog, options, error_log, lookup).stat
            if stat.status == STATUS_VALID:
                valid_count += 1
            elif stat.status == STATUS_INVALID:
                invalid_count += 1
            else:
                failed_count += 1
            total_rows += stat.total_rows
            invalid_rows += stat.invalid_rows
            skipped_lines += stat.skipped_lines
            file_stats.append(stat)
            progress.set_postfix(valid=valid_count, invalid=invalid_count + failed_count, rows=total_rows)
            progress.finish_file()

    try:
        log_path = error_log.flush()
    except OSError as e:
        # ログ書き込み失敗で全体を失敗にはしない
        logger.warning(f"failed to write error log: {e}")
    else:
        if log_path is not None:
            logger.info(f"validation errors written to {log_path}")

    end_time = datetime.now(UTC)
    return ProcessingResult(
        valid_files=valid_count,
        invalid_files=invalid_count,
        failed_files=failed_count,
        total_rows=total_rows,
        invalid_rows=invalid_rows,
        skipped_lines=skipped_lines,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
    )
