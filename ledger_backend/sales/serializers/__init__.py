from .sale import SaleItemSerializer, SalePaymentSerializer, SaleSerializer, SaleWriteSerializer

__all__ = [
    "SaleSerializer",
    "SaleItemSerializer",
    "SalePaymentSerializer",
    "SaleWriteSerializer",
]
