"""Engine services: mapping, validation, duplicates, preview and the import session."""

from .auto_mapper import auto_map, suggest_field
from .duplicate_tracker import DuplicateReport, find_duplicates
from .existing_check import ExistingLookupError, ExistingValueLookup, collect_candidates, run_existing_check
from .field_validator import MESSAGES, ValidationOptions, check_cell, validate_batch
from .preview import PreviewError, PreviewModel
from .session import ImportExecutor, ImportSession, InvalidTransitionError

__all__ = [
    "MESSAGES",
    "DuplicateReport",
    "ExistingLookupError",
    "ExistingValueLookup",
    "ImportExecutor",
    "ImportSession",
    "InvalidTransitionError",
    "PreviewError",
    "PreviewModel",
    "ValidationOptions",
    "auto_map",
    "check_cell",
    "collect_candidates",
    "find_duplicates",
    "run_existing_check",
    "suggest_field",
    "validate_batch",
]
