"""
Database connection factory utilities for recordkit.

Provides the `Database` connection provider the record accessors borrow their
connection from, plus helpers to build a DSN from settings and to open a
single psycopg connection.

Connection attempts are retried on transient failures using tenacity. Errors
raised while executing statements are never retried here; they propagate to
the caller unchanged.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection, sql
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from recordkit.config import Settings, get_settings
from recordkit.utils.logging import get_logger

log = get_logger(__name__)

_TRANSIENT_ERRORS = (psycopg.OperationalError, psycopg.InterfaceError)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def mask_dsn(dsn: str) -> str:
    """Hide the password portion of a DSN for display."""
    scheme, sep, rest = dsn.partition("://")
    if not sep or "@" not in rest:
        return dsn
    credentials, _, location = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{location}"


def apply_statement_timeout(conn: Connection, timeout_ms: int) -> None:
    """
    Set the session statement timeout. A non-positive value leaves the
    server default in place.
    """
    if timeout_ms <= 0:
        return
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("SET statement_timeout = {}").format(sql.Literal(int(timeout_ms)))
        )


def get_sync_connection(
    dsn: Optional[str] = None,
    settings: Optional[Settings] = None,
    autocommit: bool = True,
) -> Connection:
    """
    Open a dedicated synchronous connection with automatic retry.

    Retries with exponential backoff for transient connection errors, up to
    `db_connect_attempts` attempts.

    Parameters
    ----------
    dsn : str, optional
        Connection string; defaults to one built from settings.
    settings : Settings, optional
        Settings to read timeouts and retry limits from.
    autocommit : bool
        Whether every statement commits on its own. The record accessors do
        not manage transactions, so this defaults to True.

    Returns
    -------
    Connection
        A new psycopg connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    settings = settings or get_settings()
    conninfo = dsn or build_dsn(settings)

    retrying = Retrying(
        stop=stop_after_attempt(max(1, settings.db_connect_attempts)),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            conn = psycopg.connect(
                conninfo,
                autocommit=autocommit,
                connect_timeout=settings.db_connect_timeout,
            )

    apply_statement_timeout(conn, settings.db_statement_timeout_ms)
    log.debug("Opened database connection", extra={"dsn": mask_dsn(conninfo)})
    return conn


class Database:
    """
    Connection provider for record accessors.

    Holds a single lazily opened connection. There is no locking: use one
    instance per thread or request.

    Example
    -------
        with Database() as db:
            products = Product(db)
            products.insert({"name": "Widget"})
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        settings: Optional[Settings] = None,
        autocommit: bool = True,
    ) -> None:
        self._settings = settings or get_settings()
        self.dsn = dsn or build_dsn(self._settings)
        self.autocommit = autocommit
        self._conn: Optional[Connection] = None

    def get_connection(self) -> Connection:
        """Return the open connection, connecting on first use or after close."""
        if self._conn is None or self._conn.closed:
            self._conn = get_sync_connection(
                self.dsn, settings=self._settings, autocommit=self.autocommit
            )
        return self._conn

    def close(self) -> None:
        """Close the connection if one is open."""
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Database(dsn={mask_dsn(self.dsn)!r})"


__all__ = [
    "Database",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "mask_dsn",
]
