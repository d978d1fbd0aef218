from __future__ import annotations

import logging

from ..models.row_data import ParsedRow, ParsedSheet

"""Delimited text parser for uploaded inventory spreadsheets.

Rules:
- split on newline, drop lines that are blank after trimming
- the first remaining line is the header row
- fields are split on ',' then trimmed, one surrounding '"' stripped per end
- a data row is kept only when its field count equals the header count;
  other rows are dropped (reported in ParsedSheet.skipped_lines), never raised
- fewer than 2 non-blank lines is a structural error for the whole batch

Quoted commas are NOT supported: a quoted field containing ',' changes the
field count and the row is dropped like any other malformed row.
"""

__all__ = [
    "CsvStructureError",
    "parse_csv_text",
    "split_fields",
]

logger = logging.getLogger(__name__)


class CsvStructureError(Exception):
    """Raised when the text lacks a header row or any data row."""


def _strip_quotes(field: str) -> str:
    field = field.strip()
    if field.startswith('"'):
        field = field[1:]
    if field.endswith('"'):
        field = field[:-1]
    return field


def split_fields(line: str) -> list[str]:
    return [_strip_quotes(f) for f in line.split(",")]


def parse_csv_text(text: str, source: str | None = None) -> ParsedSheet:
    """Parse raw CSV text into headers, rows and skipped line numbers.

    Parameters
    ----------
    text: 生テキスト (BOM 付きでも可)
    source: ログ用のファイル名

    Raises
    ------
    CsvStructureError: fewer than 2 non-blank lines
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    # (physical line number, content) for non-blank lines only
    lines = [(n, line) for n, line in enumerate(text.split("\n"), start=1) if line.strip()]
    if len(lines) < 2:
        raise CsvStructureError("CSV file must have at least a header row and one data row")

    _, header_line = lines[0]
    headers = split_fields(header_line)

    rows: list[ParsedRow] = []
    skipped: list[int] = []
    for line_no, line in lines[1:]:
        values = split_fields(line)
        if len(values) != len(headers):
            skipped.append(line_no)
            continue
        row: ParsedRow = {}
        for header, value in zip(headers, values):
            row[header] = value if value else None
        rows.append(row)

    if skipped:
        logger.warning(
            f"{source or 'csv'}: dropped {len(skipped)} row(s) with a field count other than "
            f"{len(headers)} (lines {skipped[:10]}{'...' if len(skipped) > 10 else ''})"
        )
    logger.debug(f"{source or 'csv'}: parsed {len(rows)} rows, {len(headers)} columns")
    return ParsedSheet(headers=headers, rows=rows, skipped_lines=skipped, source=source)
