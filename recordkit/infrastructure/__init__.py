"""
Infrastructure package for recordkit.

Centralizes database connectivity concerns (connection provider, DSN
helpers, table bootstrap). Keep this layer focused on I/O and resource
management, decoupled from the record accessors.
"""

from recordkit.infrastructure.db_factory import (
    Database,
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    mask_dsn,
)
from recordkit.infrastructure.schema import ensure_schema

__all__ = [
    "Database",
    "apply_statement_timeout",
    "build_dsn",
    "ensure_schema",
    "get_sync_connection",
    "mask_dsn",
]
