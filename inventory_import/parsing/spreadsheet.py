from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.row_data import CellValue, ParsedRow, ParsedSheet
from .csv_parser import CsvStructureError, parse_csv_text

"""Spreadsheet file reader.

.csv files go through the plain-text CSV parser unchanged. .xlsx files are
read with pandas (first sheet, no header inference) and normalized into the
same ParsedSheet shape:
- fully empty rows are skipped (same as blank CSV lines)
- the first remaining row is the header
- NaN cells become None, dates become ISO strings, whole floats stay numbers
"""

__all__ = [
    "SUPPORTED_SUFFIXES",
    "SpreadsheetReadError",
    "read_spreadsheet",
    "normalize_frame",
]

SUPPORTED_SUFFIXES = (".csv", ".xlsx")


class SpreadsheetReadError(Exception):
    """Raised when a file cannot be read or has an unsupported suffix."""


def _normalize_cell(val: Any) -> CellValue:
    if pd.isna(val):
        return None
    if isinstance(val, (pd.Timestamp, datetime)):
        # 時刻 00:00 の日付セルは日付のみで表現
        if val.hour == 0 and val.minute == 0 and val.second == 0:
            return val.date().isoformat()
        return val.isoformat()
    if isinstance(val, date):
        return val.isoformat()
    if isinstance(val, str):
        stripped = val.strip()
        return stripped if stripped else None
    if isinstance(val, bool):
        return "TRUE" if val else "FALSE"
    if isinstance(val, (int, float)):
        return val
    # numpy scalars
    if hasattr(val, "item"):
        return _normalize_cell(val.item())
    return str(val)


def normalize_frame(df: pd.DataFrame, source: str) -> ParsedSheet:
    """Normalize a header-less DataFrame into a ParsedSheet.

    Raises CsvStructureError when there is no header row plus at least one
    data row, matching the CSV parser's structural rule.
    """
    non_empty = df.dropna(how="all")
    if non_empty.shape[0] < 2:
        raise CsvStructureError("CSV file must have at least a header row and one data row")

    header_series = non_empty.iloc[0]
    headers = ["" if pd.isna(c) else str(c).strip() for c in header_series.tolist()]
    # 末尾の空ヘッダ列は除去 (Excel の書式だけ残った列)
    while headers and headers[-1] == "":
        headers.pop()

    rows: list[ParsedRow] = []
    for _, raw in non_empty.iloc[1:].iterrows():
        values = raw.tolist()[: len(headers)]
        row: ParsedRow = {}
        for col, val in zip(headers, values, strict=False):
            row[col] = _normalize_cell(val)
        rows.append(row)
    return ParsedSheet(headers=headers, rows=rows, skipped_lines=[], source=source)


def read_spreadsheet(path: Path) -> ParsedSheet:
    """Read a .csv or .xlsx upload into a ParsedSheet.

    Raises
    ------
    SpreadsheetReadError: unreadable file / unsupported suffix
    CsvStructureError: no header row or no data row
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SpreadsheetReadError(f"unsupported file type: {path.name}")
    if suffix == ".csv":
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise SpreadsheetReadError(f"failed to read {path.name}: {e}") from e
        return parse_csv_text(text, source=path.name)

    try:
        # ヘッダなしで生読み、NA 文字列変換は無効 ("NA" は値として保持)
        df = pd.read_excel(path, sheet_name=0, header=None, keep_default_na=False, na_values=[""])
    except Exception as e:
        raise SpreadsheetReadError(f"failed to read {path.name}: {e}") from e
    return normalize_frame(df, path.name)
