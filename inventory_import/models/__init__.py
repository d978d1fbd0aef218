"""Domain models for the CSV import reconciliation engine.

This package contains the value types passed between the parser, auto-mapper,
validator, duplicate tracker and preview model.
"""

from .column_mapping import ColumnMapping, MappingPair
from .config_models import DatabaseConfig, ImportConfig, LookupTarget
from .existing_values import ExistingValueSnapshot
from .field_definition import FieldDefinition, FieldRule, ValueType
from .import_result import ImportResults, ImportStep
from .row_data import ParsedRow, ParsedSheet
from .validation import (
    CellIssue,
    CellValidation,
    RowValidationError,
    ValidationReport,
    ValidationStats,
)

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "LookupTarget",
    # Catalog / mapping models
    "FieldDefinition",
    "FieldRule",
    "ValueType",
    "ColumnMapping",
    "MappingPair",
    # Batch data
    "ParsedRow",
    "ParsedSheet",
    "ExistingValueSnapshot",
    # Validation results
    "CellIssue",
    "CellValidation",
    "RowValidationError",
    "ValidationReport",
    "ValidationStats",
    # Import flow
    "ImportResults",
    "ImportStep",
]
