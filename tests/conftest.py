"""
Pytest configuration for recordkit.

Provides fixtures for:
- In-memory fake connections used by unit tests
- Database connection management for integration tests
- Clean product table between integration tests
"""

from __future__ import annotations

import os
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Generator, List, Optional, Sequence, Tuple

import psycopg
import pytest
from psycopg import sql

from recordkit.config import Settings
from recordkit.infrastructure.db_factory import Database
from recordkit.infrastructure.schema import ensure_schema


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


@dataclass
class FakeResult:
    rows: Sequence[dict] = ()
    rowcount: int = 0


@dataclass
class FakeConnection:
    """
    Records every statement (rendered to text) with its parameters and replays
    queued results in order.
    """

    executed: List[Tuple[str, Any]] = field(default_factory=list)
    results: deque = field(default_factory=deque)
    autocommit: bool = True
    closed: bool = False

    def queue(self, rows: Sequence[dict] = (), rowcount: Optional[int] = None) -> None:
        count = len(rows) if rowcount is None else rowcount
        self.results.append(FakeResult(rows=list(rows), rowcount=count))

    def fail_next(self, exc: Exception) -> None:
        self.results.append(exc)

    def cursor(self, **kwargs: Any) -> "FakeCursor":
        return FakeCursor(self)

    def commit(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> List[str]:
        return [text for text, _ in self.executed]


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn
        self._rows: List[dict] = []
        self.rowcount = -1

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb

    def execute(self, query: Any, params: Any = None) -> None:
        text = query.as_string() if isinstance(query, sql.Composable) else query
        self._conn.executed.append((text, params))
        result = self._conn.results.popleft() if self._conn.results else FakeResult()
        if isinstance(result, Exception):
            raise result
        self._rows = list(result.rows)
        self.rowcount = result.rowcount

    def fetchone(self) -> Optional[dict]:
        return self._rows[0] if self._rows else None

    def fetchall(self) -> List[dict]:
        return list(self._rows)


class FakeDatabase:
    def __init__(self, conn: Optional[FakeConnection] = None) -> None:
        self.conn = conn or FakeConnection()
        self.connection_requests = 0
        self.closed = False

    def get_connection(self) -> FakeConnection:
        self.connection_requests += 1
        return self.conn

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeDatabase":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_db(fake_conn: FakeConnection) -> FakeDatabase:
    return FakeDatabase(fake_conn)


# ---------------------------------------------------------------------------
# Real database (integration tests)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "recordkit"),
        db_connect_attempts=1,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def database(
    test_dsn: str, test_settings: Settings, db_connection_available: bool
) -> Generator[Database, None, None]:
    """
    Provide a session-scoped connection provider for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    db = Database(dsn=test_dsn, settings=test_settings)
    ensure_schema(db.get_connection())
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def clean_product_table(database: Database) -> Generator[Database, None, None]:
    """
    Empty the product table before and after each test function.
    """
    conn = database.get_connection()
    with conn.cursor() as cur:
        cur.execute("TRUNCATE TABLE product RESTART IDENTITY;")
    yield database
    with conn.cursor() as cur:
        cur.execute("TRUNCATE TABLE product RESTART IDENTITY;")
