# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from inventory_import.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    # capsys は stdout を差し替えるので handler をテストごとに作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
form: inventory
existing_lookup:
  pallet_no:
    table: pallets
    column: pallet_no
  sku:
    table: items
    column: sku
lookup_chunk_size: 200
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


VALID_HEADER = "Pallet,Item Label,length_mm,width_mm,height_mm,weight_kg,Warehouse Site"


@pytest.fixture()
def valid_csv_text() -> str:
    return (
        VALID_HEADER
        + "\n"
        + "P-001,Chairs,1200,800,1000,250,Main Warehouse A\n"
        + "P-002,Tables,1200,800,900,300,Main Warehouse A\n"
    )


@pytest.fixture()
def write_upload(temp_workdir: Path):
    def _write(name: str, text: str) -> Path:
        f = temp_workdir / "data" / name
        f.write_text(text, encoding="utf-8")
        return f

    return _write


class FakeLookup:
    """In-memory ExistingValueLookup recording every call."""

    def __init__(self, stored: dict[str, set[str]] | None = None, error: Exception | None = None) -> None:
        self.stored = stored or {}
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    def find_existing(self, field_id, candidates):
        self.calls.append((field_id, list(candidates)))
        if self.error is not None:
            raise self.error
        return {v for v in candidates if v in self.stored.get(field_id, set())}


@pytest.fixture()
def fake_lookup_cls():
    return FakeLookup
