from __future__ import annotations

import psycopg
import pytest

from recordkit import config
from recordkit.config import Settings
from recordkit.infrastructure import db_factory
from recordkit.infrastructure.db_factory import Database, build_dsn, mask_dsn
from recordkit.infrastructure.schema import PRODUCT_TABLE_SQL, ensure_schema

DEFAULT_PORT = 5432
TIMEOUT_MS = 1500


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_settings_defaults(clean_env):
    settings = Settings(_env_file=None)
    assert settings.db_host == "localhost"
    assert settings.db_port == DEFAULT_PORT
    assert settings.db_user == "postgres"
    assert settings.db_name == "recordkit"
    assert settings.db_connect_attempts > 0
    assert settings.log_json is False


def test_settings_read_environment(clean_env, monkeypatch):
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_PORT", "6543")

    settings = Settings(_env_file=None)

    assert settings.db_host == "db.internal"
    assert settings.db_port == 6543


def test_get_settings_is_cached():
    assert config.get_settings() is config.get_settings()


def test_build_and_mask_dsn():
    settings = Settings(
        _env_file=None,
        db_host="h",
        db_port=1,
        db_user="u",
        db_password="secret",
        db_name="n",
    )
    dsn = build_dsn(settings)

    assert dsn == "postgresql://u:secret@h:1/n"
    assert mask_dsn(dsn) == "postgresql://u:***@h:1/n"
    assert mask_dsn("host=localhost") == "host=localhost"


def test_database_connects_lazily_and_reuses_connection(monkeypatch, fake_conn):
    calls = []

    def fake_connect(dsn, settings=None, autocommit=True):
        calls.append((dsn, autocommit))
        return fake_conn

    monkeypatch.setattr(db_factory, "get_sync_connection", fake_connect)
    db = Database(dsn="postgresql://u:p@h:1/n")

    assert calls == []
    assert db.get_connection() is fake_conn
    assert db.get_connection() is fake_conn
    assert calls == [("postgresql://u:p@h:1/n", True)]

    with db:
        pass
    assert fake_conn.closed
    assert "***" in repr(db)


def test_database_reconnects_after_close(monkeypatch, fake_conn):
    monkeypatch.setattr(db_factory, "get_sync_connection", lambda *a, **k: fake_conn)
    db = Database(dsn="postgresql://u:p@h:1/n")
    db.get_connection()
    db.close()
    fake_conn.closed = False

    assert db.get_connection() is fake_conn


def test_connect_retries_transient_errors(monkeypatch):
    attempts = []

    def failing_connect(*args, **kwargs):
        attempts.append(args)
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(db_factory.psycopg, "connect", failing_connect)
    settings = Settings(_env_file=None, db_connect_attempts=2)

    with pytest.raises(psycopg.OperationalError):
        db_factory.get_sync_connection("postgresql://u:p@h:1/n", settings=settings)
    assert len(attempts) == 2


def test_connect_applies_statement_timeout(monkeypatch, fake_conn):
    monkeypatch.setattr(db_factory.psycopg, "connect", lambda *a, **k: fake_conn)
    settings = Settings(_env_file=None, db_statement_timeout_ms=TIMEOUT_MS)

    conn = db_factory.get_sync_connection("postgresql://u:p@h:1/n", settings=settings)

    assert conn is fake_conn
    assert fake_conn.statements == [f"SET statement_timeout = {TIMEOUT_MS}"]


def test_ensure_schema_creates_product_table(fake_conn):
    ensure_schema(fake_conn)

    assert fake_conn.statements == [PRODUCT_TABLE_SQL]
