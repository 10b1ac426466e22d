"""
Domain package for recordkit.

Exports the concrete record accessors and their row schemas.
"""

from recordkit.domain.models import ProductRecord
from recordkit.domain.product import Product

__all__ = [
    "Product",
    "ProductRecord",
]
