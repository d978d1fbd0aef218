from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON-lines validation error log.

One record per failing row message (or file-level problem). row uses -1 as a
sentinel for file-level errors (structural failures, read errors) and field is
"<FILE_LEVEL>" / "<MAPPING>" where no single field applies.
"""

__all__ = [
    "ErrorRecord",
]

FILE_LEVEL = "<FILE_LEVEL>"
MAPPING_LEVEL = "<MAPPING>"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded file name
        row: 1-based data row number, -1 for file/mapping level errors
        field: Target field id or a <...> marker
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable validation message
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int  # 不明な場合 -1
    field: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, field: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
