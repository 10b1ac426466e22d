"""
Table bootstrap for the bundled models.

Creates the tables the concrete models expect when they are missing. This is
not a migration tool: existing tables are left untouched.
"""

from __future__ import annotations

from psycopg import Connection

from recordkit.utils.logging import get_logger

log = get_logger(__name__)

PRODUCT_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS product (
    id BIGSERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT
);
"""


def ensure_schema(conn: Connection) -> None:
    """Create the `product` table if it does not exist yet."""
    with conn.cursor() as cur:
        cur.execute(PRODUCT_TABLE_SQL)
    if not conn.autocommit:
        conn.commit()
    log.info("Schema ensured", extra={"tables": ["product"]})


__all__ = ["PRODUCT_TABLE_SQL", "ensure_schema"]
