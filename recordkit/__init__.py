"""
recordkit - a small Active-Record-style accessor layer for PostgreSQL.

This package provides:

- A generic `Model` base class with insert/update/delete/find operations
  over one table, guarded by an allow-list of fillable columns
- Per-model validation hooks with call-scoped error reporting
- A `Database` connection provider built on psycopg 3
- The `Product` model and a small CLI to manage products
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from recordkit.config import Settings, get_settings
from recordkit.domain import Product, ProductRecord
from recordkit.exceptions import ModelConfigurationError, RecordkitError
from recordkit.infrastructure.db_factory import Database
from recordkit.model import Model, WriteResult
from recordkit.utils.logging import configure_logging, get_logger
from recordkit.validation import Validator, combine, required

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Connection
    "Database",
    # Accessors
    "Model",
    "WriteResult",
    "Product",
    "ProductRecord",
    # Validation
    "Validator",
    "combine",
    "required",
    # Errors
    "ModelConfigurationError",
    "RecordkitError",
    # Logging
    "configure_logging",
    "get_logger",
]
