from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load the YAML config (default config/cardvault.yml)
- Validate it against the packaged JSON schema
- Apply defaults
- Overlay secrets from the environment (.env is loaded by the CLI)
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ConfigError",
    "DatabaseConfig",
    "ImportPolicy",
    "ImageSearchConfig",
    "AppConfig",
    "load_config",
    "resolve_dsn",
]

DEFAULT_CONFIG_PATH = Path("config/cardvault.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

NULLIFY = "nullify"
REJECT = "reject"
ATOMIC = "atomic"
PER_ROW = "per_row"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Fallback connection settings; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportPolicy:
    """How the importer treats unresolved names and batch failures.

    unresolved_references: "nullify" stores NULL and reports the row,
        "reject" aborts the import before any insert
    batch_commit: "atomic" single transaction, "per_row" savepoint per row
    revalidate_before_import: re-run validation inside the import transaction
    """
    unresolved_references: str = NULLIFY
    batch_commit: str = ATOMIC
    revalidate_before_import: bool = False
    page_size: int = 500


@dataclass(frozen=True)
class ImageSearchConfig:
    api_url: str | None = None
    api_key: str | None = None
    ebay_app_id: str | None = None
    ebay_cert_id: str | None = None
    timeout_seconds: float = 10.0
    max_results: int = 9
    ebay_marketplace: str = "EBAY_US"


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    import_policy: ImportPolicy = field(default_factory=ImportPolicy)
    image_search: ImageSearchConfig = field(default_factory=ImageSearchConfig)
    logs_directory: str = "logs"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or data violates it
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


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

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

    imp_raw = data.get("import") or {}
    policy = ImportPolicy(
        unresolved_references=imp_raw.get("unresolved_references", NULLIFY),
        batch_commit=imp_raw.get("batch_commit", ATOMIC),
        revalidate_before_import=imp_raw.get("revalidate_before_import", False),
        page_size=imp_raw.get("page_size", 500),
    )

    img_raw = data.get("image_search") or {}
    image_search = ImageSearchConfig(
        api_url=os.getenv("IMAGE_SEARCH_API_URL") or img_raw.get("api_url"),
        api_key=os.getenv("IMAGE_SEARCH_API_KEY"),
        ebay_app_id=os.getenv("EBAY_APP_ID"),
        ebay_cert_id=os.getenv("EBAY_CERT_ID"),
        timeout_seconds=float(img_raw.get("timeout_seconds", 10.0)),
        max_results=img_raw.get("max_results", 9),
        ebay_marketplace=img_raw.get("ebay_marketplace", "EBAY_US"),
    )

    return AppConfig(
        database=db,
        import_policy=policy,
        image_search=image_search,
        logs_directory=data.get("logs_directory", "logs"),
    )


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Connection string, in priority order:

    1. DATABASE_URL / PGDSN environment variables (.env loaded with override)
    2. database.dsn from the config file
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back to
       the individual database.* keys
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn
