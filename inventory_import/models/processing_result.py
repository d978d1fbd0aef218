from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Batch validation result models.

Aggregates per-file validation outcomes of a directory run into the numbers
rendered on the SUMMARY line.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file validation statistics."""
    file_name: str  # ファイル名
    status: str  # valid/invalid/failed
    total_rows: int
    invalid_rows: int
    skipped_lines: int  # 列数不一致で捨てた行
    missing_mappings: list[str]  # 未マッピング必須フィールドのラベル
    existing_check: str  # done/skipped/failed
    elapsed_seconds: float


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of validating every file in the source directory."""
    valid_files: int
    invalid_files: int
    failed_files: int  # structural / read failures
    total_rows: int
    invalid_rows: int
    skipped_lines: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.valid_files + self.invalid_files + self.failed_files
