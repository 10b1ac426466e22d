"""
Product accessor.

Products have a required name and an optional description, stored in the
`product` table.
"""

from __future__ import annotations

from psycopg import sql

from recordkit.model import Model
from recordkit.validation import required


class Product(Model):
    """
    CRUD access to the `product` table.

    Set `table` on the class, or pass `table=` when constructing, if rows
    live in a differently named table.
    """

    fillable = ("name", "description")
    validator = staticmethod(required("name", "Name is required"))

    def get_total(self) -> int:
        """Total number of products."""
        query = sql.SQL("SELECT COUNT(*) AS total FROM {}").format(
            sql.Identifier(self.table_name)
        )
        with self._cursor() as cur:
            cur.execute(query)
            row = cur.fetchone()
        return int(row["total"])


__all__ = ["Product"]
