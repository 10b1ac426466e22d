"""
Row schemas for the bundled models.

Defines a typed view of a `product` row, aligned with
`recordkit.infrastructure.schema`. Accessors return plain dicts; this model is
used where a validated, serializable representation is wanted (e.g. the CLI).
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ProductRecord(BaseModel):
    """
    Representation of a single row in the `product` table.
    """

    id: int = Field(..., description="Primary key (BIGSERIAL).")
    name: str = Field(..., description="Product name, never empty.")
    description: Optional[str] = Field(None, description="Free-form description.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }


__all__ = ["ProductRecord"]
