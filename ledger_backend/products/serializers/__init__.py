# products/serializers/__init__.py

from .product import (
    ProductSerializer,
    StockAdjustSerializer,
    StockChangeSerializer,
    StockMovementSerializer,
)

__all__ = [
    "ProductSerializer",
    "StockMovementSerializer",
    "StockChangeSerializer",
    "StockAdjustSerializer",
]
