from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
import yaml
from dotenv import load_dotenv

from cardvault.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config, resolve_dsn
from cardvault.excel.reader import ParseError
from cardvault.excel.template import TEMPLATE_FILENAME, describe_template
from cardvault.logging.error_log import ErrorLogBuffer, records_from_import, records_from_validation
from cardvault.logging.init import log_summary, set_debug, setup_logging
from cardvault.models.column_mapping import ColumnMapping, MappingError
from cardvault.services.image_search import CardSearchParams, ImageSearchService
from cardvault.services.import_service import AuthorizationError, ImportRejectedError, ImportService
from cardvault.services.importer import ImportFailedError, UnresolvedReferenceError
from cardvault.services.summary import render_summary_line

"""CLI entrypoint.

    python -m cardvault template [--output PATH] [--describe]
    python -m cardvault parse FILE
    python -m cardvault validate FILE [--mapping FILE]
    python -m cardvault import FILE --collection ID --user ID [--mapping FILE]
    python -m cardvault search-images --player NAME --season S --card-number N [...]

Results are printed to stdout as JSON; log lines carry INFO/WARN/ERROR/SUMMARY
labels.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_INVALID = 2


@contextmanager
def _db_connection(cfg: AppConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 cursor in autocommit mode.

    Transaction boundaries are issued explicitly (BEGIN/COMMIT/ROLLBACK) by
    the import service.
    """
    conn = psycopg2.connect(resolve_dsn(cfg.database))
    conn.autocommit = True
    cur = None
    try:
        cur = conn.cursor()
        yield cur
    finally:
        if cur is not None:
            cur.close()
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """.env values override the process environment (connection settings first)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="cardvault", description="Sport card Excel importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("template", help="Write the import template workbook")
    t.add_argument("--output", type=Path, default=Path(TEMPLATE_FILENAME))
    t.add_argument("--describe", action="store_true", help="Print one line per column instead")

    ps = sub.add_parser("parse", help="Show headers, row count and auto-matched columns")
    ps.add_argument("file", type=Path)

    v = sub.add_parser("validate", help="Validate a workbook against the reference data")
    v.add_argument("file", type=Path)
    v.add_argument("--mapping", type=Path, help="YAML/JSON list of {excelColumn, canonicalField}")

    i = sub.add_parser("import", help="Import a workbook into a collection")
    i.add_argument("file", type=Path)
    i.add_argument("--collection", type=int, required=True)
    i.add_argument("--user", type=int, required=True, help="Acting user id (must own the collection)")
    i.add_argument("--mapping", type=Path)

    s = sub.add_parser("search-images", help="Search card photos")
    s.add_argument("--player", required=True)
    s.add_argument("--season", required=True)
    s.add_argument("--card-number", required=True)
    s.add_argument("--brand")
    s.add_argument("--series")
    s.add_argument("--insert")
    s.add_argument("--parallel")
    s.add_argument("--autograph", action="store_true")
    s.add_argument("--numbered-of", type=int)
    return p.parse_args(argv)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _load_mapping_file(path: Path) -> list[ColumnMapping]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise MappingError(f"cannot read mapping file {path}: {e}") from e
    if not isinstance(data, list):
        raise MappingError(f"mapping file {path} must contain a list")
    return [ColumnMapping.from_dict(entry) for entry in data]


def _resolve_mappings(service: ImportService, data: bytes, mapping_path: Path | None) -> list[ColumnMapping]:
    if mapping_path is not None:
        return _load_mapping_file(mapping_path)
    # no mapping file: use the auto-matched mapping as confirmed
    return service.parse_file(data).auto_mappings


def _cmd_template(args: argparse.Namespace, logger: Any) -> int:
    if args.describe:
        for line in describe_template():
            print(line)
        return EXIT_SUCCESS
    download = ImportService(cursor=None).download_template()
    args.output.write_bytes(download.file_bytes)
    logger.info(f"template written: {args.output}")
    return EXIT_SUCCESS


def _cmd_parse(args: argparse.Namespace, logger: Any) -> int:
    summary = ImportService(cursor=None).parse_file(args.file.read_bytes())
    _print_json(summary.to_dict())
    return EXIT_SUCCESS


def _cmd_validate(args: argparse.Namespace, cfg: AppConfig, cursor: Any, logger: Any) -> int:
    service = ImportService(cursor, cfg)
    data = args.file.read_bytes()
    mappings = _resolve_mappings(service, data, args.mapping)
    result = service.validate(data, mappings)
    _print_json(result.to_dict())
    if result.valid:
        return EXIT_SUCCESS
    error_log = ErrorLogBuffer(cfg.logs_directory)
    error_log.extend(records_from_validation(args.file.name, result))
    path = error_log.flush()
    logger.warning(f"validation failed; details in {path}")
    return EXIT_INVALID


def _cmd_import(args: argparse.Namespace, cfg: AppConfig, cursor: Any, logger: Any) -> int:
    service = ImportService(cursor, cfg)
    mappings = _load_mapping_file(args.mapping) if args.mapping is not None else None
    result = service.import_file(args.collection, args.user, args.file.read_bytes(), mappings)
    _print_json(result.to_dict())

    error_log = ErrorLogBuffer(cfg.logs_directory)
    error_log.extend(records_from_import(args.file.name, result))
    path = error_log.flush()
    if path is not None:
        logger.warning(f"import issues logged to {path}")

    log_summary(render_summary_line(result))
    return EXIT_INVALID if result.failed_rows else EXIT_SUCCESS


def _cmd_search_images(args: argparse.Namespace, cfg: AppConfig) -> int:
    params = CardSearchParams(
        player_name=args.player,
        season=args.season,
        card_number=args.card_number,
        brand_name=args.brand,
        series_name=args.series,
        insert_name=args.insert,
        parallel_name=args.parallel,
        autograph=args.autograph,
        numbered=args.numbered_of is not None,
        numbered_of=args.numbered_of,
    )
    result = ImageSearchService(cfg.image_search).search_card(params)
    _print_json(result.to_dict())
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when argv is None; [] from tests must stay empty
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        if args.command == "template":
            return _cmd_template(args, logger)
        if args.command == "parse":
            return _cmd_parse(args, logger)

        try:
            cfg = load_config(args.config)
        except ConfigError as e:
            logger.error(f"config: {e}")
            return EXIT_FATAL

        if args.command == "search-images":
            return _cmd_search_images(args, cfg)

        try:
            with _db_connection(cfg) as cur:
                if args.command == "validate":
                    return _cmd_validate(args, cfg, cur, logger)
                return _cmd_import(args, cfg, cur, logger)
        except psycopg2.Error as e:
            logger.error(f"database: {e}")
            return EXIT_FATAL
    except OSError as e:
        logger.error(f"file: {e}")
        return EXIT_FATAL
    except ParseError as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL
    except MappingError as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL
    except AuthorizationError as e:
        logger.error(f"authorization: {e}")
        return EXIT_FATAL
    except (ImportRejectedError, UnresolvedReferenceError) as e:
        logger.error(f"import: {e}")
        return EXIT_INVALID
    except ImportFailedError as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
