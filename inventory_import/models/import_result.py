from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Import flow models: session step enum and executor results."""

__all__ = [
    "ImportStep",
    "ImportResults",
]


class ImportStep(Enum):
    """Import session lifecycle.

    State transitions: upload → mapping_review → preview → importing → complete,
    plus back from mapping_review / preview to upload.

    - IMPORTING: forward only, the executor has been invoked
    - COMPLETE: terminal, a new session is needed for the next file
    """
    UPLOAD = "upload"
    MAPPING_REVIEW = "mapping_review"
    PREVIEW = "preview"
    IMPORTING = "importing"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ImportResults:
    """Per-batch outcome reported by the external import executor."""
    success: int
    failed: int
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success + self.failed
