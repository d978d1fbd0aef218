from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import FILE_LEVEL, MAPPING_LEVEL, ErrorRecord
from ..models.validation import ValidationReport

"""Validation error log buffering.

- JSON Lines, fixed schema (no extra keys)
- one `logs/errors-YYYYMMDD-HHMMSS.log` (UTC) per run, created on first flush
- records are buffered and written once at the end of the run
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
    "file_level_record",
    "records_for_report",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


def records_for_report(file_name: str, report: ValidationReport) -> list[ErrorRecord]:
    """Flatten a ValidationReport into error log records.

    Missing required mappings become one <MAPPING> record each; every cell
    issue becomes one record on its 1-based data row.
    """
    records: list[ErrorRecord] = []
    for f in report.missing_required_mappings:
        records.append(
            ErrorRecord.create(
                file=file_name,
                row=-1,
                field=MAPPING_LEVEL,
                error_type="MISSING_REQUIRED_MAPPING",
                message=f"{f.label} ({f.id}) is required but no column is mapped to it",
            )
        )
    for err in report.row_errors:
        for issue in err.issues:
            records.append(
                ErrorRecord.create(
                    file=file_name,
                    row=err.row_number,
                    field=issue.field_id,
                    error_type=issue.code,
                    message=issue.message,
                )
            )
    return records


def file_level_record(file_name: str, error_type: str, message: str) -> ErrorRecord:
    return ErrorRecord.create(file=file_name, row=-1, field=FILE_LEVEL, error_type=error_type, message=message)


class ErrorLogBuffer:
    """In-memory buffer for error records. flush() appends JSON Lines.

    The file path is fixed on first access. Not thread-safe (serial run).
    """

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend(self, records: list[ErrorRecord]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; None when there was nothing to write."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
