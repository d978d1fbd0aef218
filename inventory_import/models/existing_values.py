from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

"""ExistingValueSnapshot model.

Frozen view of which values of each unique-constrained field already exist in
persisted storage. A snapshot remembers which candidate values were actually
checked, so that a later edit introducing an unchecked value can be detected
as staleness rather than silently treated as "not existing".
"""

__all__ = [
    "ExistingValueSnapshot",
]


@dataclass(frozen=True)
class ExistingValueSnapshot:
    existing: Mapping[str, frozenset[str]] = field(default_factory=dict)
    checked: Mapping[str, frozenset[str]] = field(default_factory=dict)
    version: int = 0

    @staticmethod
    def build(
        existing: Mapping[str, Iterable[str]],
        checked: Mapping[str, Iterable[str]] | None = None,
        version: int = 0,
    ) -> ExistingValueSnapshot:
        """Freeze plain sets/lists into a snapshot.

        When checked is omitted the existing values are taken as the only
        checked values (useful for fixtures and hosts that pre-computed sets).
        """
        frozen_existing = {f: frozenset(str(v).strip() for v in vals) for f, vals in existing.items()}
        if checked is None:
            frozen_checked = dict(frozen_existing)
        else:
            frozen_checked = {f: frozenset(str(v).strip() for v in vals) for f, vals in checked.items()}
            for f, vals in frozen_existing.items():
                frozen_checked[f] = frozen_checked.get(f, frozenset()) | vals
        return ExistingValueSnapshot(
            existing=MappingProxyType(frozen_existing),
            checked=MappingProxyType(frozen_checked),
            version=version,
        )

    def values_for(self, field_id: str) -> frozenset[str]:
        return self.existing.get(field_id, frozenset())

    def contains(self, field_id: str, value: str) -> bool:
        return value in self.values_for(field_id)

    def covers(self, candidates: Mapping[str, Iterable[str]]) -> bool:
        """True when every candidate value was part of the checked set."""
        for field_id, values in candidates.items():
            checked = self.checked.get(field_id, frozenset())
            for v in values:
                if v not in checked:
                    return False
        return True
