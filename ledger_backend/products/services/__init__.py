from .stock_ledger import (
    add_stock,
    adjust_stock,
    check_stock_availability,
    ensure_stock_available,
    get_low_stock_products,
    get_stock_history,
    reduce_stock,
)

__all__ = [
    "add_stock",
    "reduce_stock",
    "adjust_stock",
    "check_stock_availability",
    "ensure_stock_available",
    "get_stock_history",
    "get_low_stock_products",
]
