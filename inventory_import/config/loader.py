from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..catalog.forms import get_catalog
from ..models.config_models import DatabaseConfig, ImportConfig, LookupTarget

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate it against the packaged JSON schema (config_schema.json)
- Apply defaults and build the frozen ImportConfig
- Reject lookup targets for fields that are not unique in the chosen form
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _lookup_targets(form: str, raw: dict[str, Any]) -> dict[str, LookupTarget]:
    catalog = get_catalog(form)
    unique_ids = {f.id for f in catalog.unique_fields}
    targets: dict[str, LookupTarget] = {}
    for field_id, spec in raw.items():
        if field_id not in unique_ids:
            raise ConfigError(
                f"existing_lookup.{field_id}: not a unique field of form '{form}' "
                f"(expected one of {sorted(unique_ids)})"
            )
        targets[field_id] = LookupTarget(field_id=field_id, table=spec["table"], column=spec["column"])
    return targets


def load_config(path: Path = DEFAULT_CONFIG_PATH, *, form: str | None = None) -> ImportConfig:
    """Load and validate the import configuration.

    form overrides the configured form (CLI --form) before validation.
    """
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")
    if form is not None:
        data = {**data, "form": form}

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        source_directory=data["source_directory"],
        form=data["form"],
        existing_lookup=_lookup_targets(data["form"], data.get("existing_lookup") or {}),
        lookup_chunk_size=data.get("lookup_chunk_size", 500),
        reject_past_inventory_dates=data.get("reject_past_inventory_dates", False),
        database=db,
    )
