"""Logging setup and the JSON-lines validation error log."""

from .error_log import ErrorLogBuffer, file_level_record, records_for_report
from .init import get_logger, log_summary, setup_logging

__all__ = [
    "ErrorLogBuffer",
    "file_level_record",
    "get_logger",
    "log_summary",
    "records_for_report",
    "setup_logging",
]
