from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

"""ParsedRow / ParsedSheet models.

ParsedRow is the raw header -> value mapping for one uploaded spreadsheet line.
ParsedSheet is the parser output: ordered headers, ordered rows, and the
physical line numbers that were dropped because their field count did not
match the header.
"""

__all__ = [
    "CellValue",
    "ParsedRow",
    "ParsedSheet",
    "cell_text",
]

CellValue = Union[str, int, float, None]
ParsedRow = dict[str, CellValue]


@dataclass
class ParsedSheet:
    headers: list[str]
    rows: list[ParsedRow]
    skipped_lines: list[int] = field(default_factory=list)  # 1-based, 元テキストの行番号
    source: str | None = None  # file name when read from disk


def cell_text(value: CellValue) -> str:
    """Trimmed string form of a raw cell value ('' for None)."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # 10.0 from a spreadsheet cell compares equal to "10" typed in a CSV
        return str(int(value))
    return str(value).strip()
