from __future__ import annotations

import os
import re
import time
from collections.abc import Sequence
from contextlib import contextmanager
from typing import Any

from ..models.config_models import DatabaseConfig, LookupTarget
from ..services.existing_check import ExistingLookupError

"""PostgreSQL-backed existing-value lookup.

One SELECT ... WHERE col = ANY(%s) per chunk of candidate values, so a whole
upload is checked in a few round trips. Table / column names come from config
and are validated as plain identifiers before being interpolated.

Connection resolution order (same as the CLI):
    1. DATABASE_URL / PGDSN environment variables (after .env load)
    2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the database section of config/import.yml
"""

__all__ = [
    "PostgresExistingValueLookup",
    "db_connection",
    "resolve_dsn",
]

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(db_cfg: DatabaseConfig):  # pragma: no cover (thin wrapper; needs a live DB)
    """Yield a read-only psycopg2 cursor; the connection is always closed."""
    import psycopg2

    conn = psycopg2.connect(resolve_dsn(db_cfg))
    try:
        conn.set_session(readonly=True, autocommit=True)
        cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()
    finally:
        conn.close()


class PostgresExistingValueLookup:
    """ExistingValueLookup over a DB-API cursor (psycopg2)."""

    def __init__(
        self,
        cursor: Any,
        targets: dict[str, LookupTarget],
        *,
        chunk_size: int = 500,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        for t in targets.values():
            if not _IDENT_RE.match(t.table) or not _IDENT_RE.match(t.column):
                raise ValueError(f"invalid lookup identifier: {t.table}.{t.column}")
        self.cursor = cursor
        self.targets = targets
        self.chunk_size = chunk_size
        self.round_trips = 0
        self.elapsed_seconds = 0.0

    def find_existing(self, field_id: str, candidates: Sequence[str]) -> set[str]:
        target = self.targets.get(field_id)
        if target is None:
            raise ExistingLookupError(f"no lookup target configured for field '{field_id}'")
        sql = (
            f'SELECT "{target.column}" FROM {target.table} '
            f'WHERE "{target.column}" = ANY(%s) AND "{target.column}" IS NOT NULL'
        )
        found: set[str] = set()
        values = list(candidates)
        start = time.time()
        try:
            for i in range(0, len(values), self.chunk_size):
                chunk = values[i : i + self.chunk_size]
                self.cursor.execute(sql, (chunk,))
                self.round_trips += 1
                found.update(str(r[0]).strip() for r in self.cursor.fetchall())
        except Exception as e:
            raise ExistingLookupError(f"{target.table}.{target.column}: {e}") from e
        finally:
            self.elapsed_seconds += time.time() - start
        return found
