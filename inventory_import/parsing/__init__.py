"""Upload parsing: raw CSV text and spreadsheet files into ParsedSheet."""

from .csv_parser import CsvStructureError, parse_csv_text
from .spreadsheet import SpreadsheetReadError, read_spreadsheet

__all__ = [
    "CsvStructureError",
    "SpreadsheetReadError",
    "parse_csv_text",
    "read_spreadsheet",
]
