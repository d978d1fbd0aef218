from __future__ import annotations

import argparse
import os
import sys
from contextlib import ExitStack
from pathlib import Path

from dotenv import load_dotenv

from ..catalog.forms import CATALOGS, get_catalog
from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.existing_lookup import PostgresExistingValueLookup, db_connection
from ..logging.init import enable_debug, log_summary, setup_logging
from ..models.config_models import ImportConfig
from ..models.processing_result import ProcessingResult
from ..parsing.csv_parser import CsvStructureError
from ..parsing.spreadsheet import SpreadsheetReadError, read_spreadsheet
from ..services.auto_mapper import auto_map
from ..services.orchestrator import ProcessingError, process_all, scan_upload_files
from ..services.summary import render_summary_line

"""CLI entrypoint: validate every upload in the configured directory.

- Load .env (override) and config/import.yml
- Open a read-only DB connection for the existing-value check when
  existing_lookup is configured (falls back to offline mode on failure,
  DISABLE_DB_CONNECT=1 forces offline mode)
- Validate each .csv / .xlsx file and print the SUMMARY line

Exit codes: 0 all files valid, 2 any invalid/failed file, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; .env values win over the process env."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Validate warehouse inventory uploads before import")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print headers, suggested mapping & first rows of each file then exit",
    )
    p.add_argument("--form", choices=sorted(CATALOGS), help="Override the configured import form")
    return p.parse_args(argv)


def _inspect_data(cfg: ImportConfig) -> int:
    try:
        files = scan_upload_files(Path(cfg.source_directory))
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not files:
        print("inspect: no .csv/.xlsx files")
        return EXIT_SUCCESS_ALL
    catalog = get_catalog(cfg.form)
    for f in files:
        print(f"FILE: {f.name}")
        try:
            sheet = read_spreadsheet(f)
        except (CsvStructureError, SpreadsheetReadError) as e:
            print(f"  read_error: {e}")
            continue
        mapping = auto_map(sheet.headers, catalog)
        print(f"  headers={sheet.headers}")
        print(f"  mapping={ {p.csv_column: p.field_id for p in mapping.pairs()} }")
        if sheet.skipped_lines:
            print(f"  skipped_lines={sheet.skipped_lines}")
        print("    sample_rows=", sheet.rows[:3])
    return EXIT_SUCCESS_ALL


def _run(cfg: ImportConfig, logger) -> tuple[ProcessingResult, str]:
    """process_all with a live lookup when possible; returns (result, mode)."""
    if not cfg.existing_lookup:
        logger.debug("no existing_lookup configured -> offline mode")
        return process_all(cfg, lookup=None), "offline"
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> offline mode")
        return process_all(cfg, lookup=None), "offline"
    with ExitStack() as stack:
        # 接続失敗のみ offline にフォールバックする (検証中の例外はそのまま伝播)
        try:
            cur = stack.enter_context(db_connection(cfg.database))
        except Exception as db_e:
            logger.info(f"DB connection failed -> offline mode (existing-value check skipped): {db_e}")
            return process_all(cfg, lookup=None), "offline"
        lookup = PostgresExistingValueLookup(cur, cfg.existing_lookup, chunk_size=cfg.lookup_chunk_size)
        result = process_all(cfg, lookup=lookup)
        logger.debug(f"existing lookup round_trips={lookup.round_trips} elapsed_sec={lookup.elapsed_seconds:.3f}")
        return result, "live"


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()
    # [] を渡されたときに sys.argv (pytest の引数) を読まないよう None のときだけ参照
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug()

    try:
        cfg = load_config(DEFAULT_CONFIG_PATH, form=args.form)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    logger.info(f"Validating uploads from: {directory} (form={cfg.form})")

    if args.inspect_data:
        return _inspect_data(cfg)

    try:
        result, mode = _run(cfg, logger)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    logger.info(f"mode={mode} total_rows={result.total_rows} invalid_rows={result.invalid_rows}")

    summary_line = render_summary_line(result.total_files, result)
    # log_summary が "SUMMARY " ラベルを付けるので本文のみ渡す
    log_summary(summary_line[len("SUMMARY "):])

    if result.invalid_files > 0 or result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
