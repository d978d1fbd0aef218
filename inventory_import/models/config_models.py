from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the import reconciliation tool.

These are populated by inventory_import.config.loader after schema validation
and are read-only for the rest of the process.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class LookupTarget:
    """Where existing values of one unique-constrained field live in storage."""
    field_id: str  # catalog field id (pallet_no / sku)
    table: str
    column: str


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for a validation run."""
    source_directory: str  # Directory scanned for .csv / .xlsx uploads
    form: str  # Field catalog variant name
    existing_lookup: dict[str, LookupTarget] = field(default_factory=dict)
    lookup_chunk_size: int = 500
    reject_past_inventory_dates: bool = False
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
