from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

"""ColumnMapping model.

Ordered association of uploaded CSV columns to target field ids. A column maps
to at most one field (assigning a column again replaces its field), but any
number of columns may point at the same field; the validator treats each
column independently.
"""

__all__ = [
    "MappingPair",
    "ColumnMapping",
]


@dataclass(frozen=True)
class MappingPair:
    csv_column: str
    field_id: str


class ColumnMapping:
    """Mutable, insertion-ordered column -> field id mapping."""

    def __init__(self, pairs: Iterable[MappingPair | tuple[str, str]] = ()) -> None:
        self._fields: dict[str, str] = {}
        for pair in pairs:
            if isinstance(pair, MappingPair):
                self.assign(pair.csv_column, pair.field_id)
            else:
                column, field_id = pair
                self.assign(column, field_id)

    def assign(self, csv_column: str, field_id: str | None) -> None:
        """Map a column to a field; None (or '') leaves the column unmapped."""
        # 同じ列の再割当ては置換 (last write wins)、挿入順は末尾へ移動
        self._fields.pop(csv_column, None)
        if field_id:
            self._fields[csv_column] = field_id

    def unassign(self, csv_column: str) -> None:
        self._fields.pop(csv_column, None)

    def field_for(self, csv_column: str) -> str | None:
        return self._fields.get(csv_column)

    def columns_for(self, field_id: str) -> list[str]:
        return [c for c, f in self._fields.items() if f == field_id]

    def is_mapped(self, field_id: str) -> bool:
        return field_id in self._fields.values()

    def pairs(self) -> list[MappingPair]:
        return [MappingPair(c, f) for c, f in self._fields.items()]

    def key(self) -> tuple[tuple[str, str], ...]:
        """Hashable snapshot, used as part of the validation memo key."""
        return tuple(self._fields.items())

    def copy(self) -> ColumnMapping:
        return ColumnMapping(self.key())

    def __iter__(self) -> Iterator[MappingPair]:
        return iter(self.pairs())

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnMapping):
            return NotImplemented
        return self.key() == other.key()

    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return f"ColumnMapping({list(self._fields.items())!r})"
