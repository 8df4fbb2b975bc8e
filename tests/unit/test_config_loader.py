from __future__ import annotations

from pathlib import Path

import pytest

from cardvault.config.loader import (
    ConfigError,
    DatabaseConfig,
    load_config,
    resolve_dsn,
)


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for key in (
        "DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE",
        "IMAGE_SEARCH_API_URL", "IMAGE_SEARCH_API_KEY", "EBAY_APP_ID", "EBAY_CERT_ID",
    ):
        monkeypatch.delenv(key, raising=False)


def _write(temp_workdir: Path, text: str) -> Path:
    path = temp_workdir / "config" / "cardvault.yml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_full_config(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.import_policy.unresolved_references == "nullify"
    assert cfg.import_policy.batch_commit == "atomic"
    assert cfg.import_policy.page_size == 500
    assert cfg.image_search.timeout_seconds == 5.0
    assert cfg.logs_directory == "logs"


def test_defaults_for_optional_sections(temp_workdir: Path):
    cfg = load_config(_write(temp_workdir, "database:\n  host: db\n"))
    assert cfg.import_policy.unresolved_references == "nullify"
    assert cfg.import_policy.revalidate_before_import is False
    assert cfg.image_search.max_results == 9
    assert cfg.image_search.ebay_marketplace == "EBAY_US"


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "absent.yml")


def test_invalid_yaml(temp_workdir: Path):
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(_write(temp_workdir, "database: [unclosed\n"))


def test_root_must_be_mapping(temp_workdir: Path):
    with pytest.raises(ConfigError, match="mapping"):
        load_config(_write(temp_workdir, "- a\n- b\n"))


@pytest.mark.parametrize(
    "text",
    [
        "import:\n  batch_commit: atomic\n",
        "database: {}\nimport:\n  unresolved_references: ignore\n",
        "database: {}\nimport:\n  batch_commit: eventually\n",
        "database: {}\nunknown_key: 1\n",
        "database: {}\nimport:\n  page_size: 0\n",
    ],
)
def test_schema_violations(temp_workdir: Path, text: str):
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(_write(temp_workdir, text))


def test_image_search_secrets_from_env(temp_workdir: Path, monkeypatch):
    monkeypatch.setenv("IMAGE_SEARCH_API_URL", "https://search.example")
    monkeypatch.setenv("IMAGE_SEARCH_API_KEY", "k")
    monkeypatch.setenv("EBAY_APP_ID", "app")
    monkeypatch.setenv("EBAY_CERT_ID", "cert")
    cfg = load_config(_write(temp_workdir, "database: {}\n"))
    assert cfg.image_search.api_url == "https://search.example"
    assert cfg.image_search.api_key == "k"
    assert cfg.image_search.ebay_app_id == "app"
    assert cfg.image_search.ebay_cert_id == "cert"


def test_resolve_dsn_prefers_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/db")
    assert resolve_dsn(DatabaseConfig(dsn="postgresql://other")) == "postgresql://u@h/db"


def test_resolve_dsn_from_config_dsn():
    assert resolve_dsn(DatabaseConfig(dsn="postgresql://cfg")) == "postgresql://cfg"


def test_resolve_dsn_from_parts(monkeypatch):
    monkeypatch.setenv("PGUSER", "envuser")
    dsn = resolve_dsn(DatabaseConfig(host="db", port=6543, user="cfguser", password="pw", database="cards"))
    assert dsn == "host=db port=6543 user=envuser dbname=cards password=pw"
