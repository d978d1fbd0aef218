from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""Summary line rendering for the batch validation CLI.

Contract format:
    SUMMARY files={n}/{n} valid={v} invalid={i} rows={r} invalid_rows={x}
    skipped_lines={s} elapsed_sec={e}
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(value: float) -> str:
    """Integers without a fraction; tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(total_files: int, result: ProcessingResult) -> str:
    """Render the SUMMARY line for a validation run.

    Files that could not be read or were structurally rejected count as
    invalid on the line.

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     valid_files=1, invalid_files=1, failed_files=0, total_rows=10,
        ...     invalid_rows=2, skipped_lines=1, start_time=t, end_time=t,
        ...     elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(2, result)
        'SUMMARY files=2/2 valid=1 invalid=1 rows=10 invalid_rows=2 skipped_lines=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY files={total_files}/{total_files} "
        f"valid={result.valid_files} "
        f"invalid={result.invalid_files + result.failed_files} "
        f"rows={result.total_rows} "
        f"invalid_rows={result.invalid_rows} "
        f"skipped_lines={result.skipped_lines} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )
