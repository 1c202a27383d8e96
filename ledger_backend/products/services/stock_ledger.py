# products/services/stock_ledger.py

"""
STOCK LEDGER SERVICE

Purpose:
- The only writer of Product.current_stock.
- Every mutation appends one immutable StockMovement row
  (previous_stock, signed quantity, new_stock, cost snapshot).

Rules:
- quantity for add/reduce must be a positive integer
- the product row is locked (select_for_update) for the read-modify-write
- stock can never go below zero; a refused reduction writes nothing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F

from accounting.services.exceptions import InsufficientStockError, NotFoundError, ValidationError
from accounting.services.money import q2, to_money, to_quantity
from products.models import Product, StockMovement

logger = logging.getLogger(__name__)

Module = StockMovement.ReferenceModule


@dataclass(frozen=True)
class StockChange:
    product: Product
    movement: StockMovement
    previous_stock: int
    new_stock: int


@dataclass(frozen=True)
class Availability:
    product_id: object
    sku: str
    name: str
    requested: int
    available: int

    @property
    def shortfall(self) -> int:
        return max(self.requested - self.available, 0)

    @property
    def sufficient(self) -> bool:
        return self.shortfall == 0

    def as_dict(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "sku": self.sku,
            "name": self.name,
            "requested": self.requested,
            "available": self.available,
            "shortfall": self.shortfall,
            "sufficient": self.sufficient,
        }


def _lock_product(product) -> Product:
    pk = getattr(product, "pk", product)
    try:
        return Product.objects.select_for_update().get(pk=pk)
    except Product.DoesNotExist:
        raise NotFoundError(f"Product {pk} not found")


def _write_movement(
    locked: Product,
    *,
    movement_type: str,
    quantity: int,
    unit_cost,
    reference_module: str,
    reference_id="",
    reference_number: str = "",
    note: str = "",
    user=None,
) -> StockChange:
    previous = int(locked.current_stock or 0)
    new_stock = previous + quantity

    if new_stock < 0:
        raise InsufficientStockError(
            product=locked.name,
            requested=abs(quantity),
            available=previous,
        )

    cost = to_money(locked.cost_price if unit_cost is None else unit_cost, field_name="unit_cost")

    try:
        movement = StockMovement.objects.create(
            product=locked,
            movement_type=movement_type,
            quantity=quantity,
            previous_stock=previous,
            new_stock=new_stock,
            unit_cost=cost,
            total_cost=q2(cost * abs(quantity)),
            reference_module=reference_module,
            reference_id=str(reference_id or ""),
            reference_number=reference_number or "",
            note=(note or "").strip()[:255],
            performed_by=user,
        )
    except DjangoValidationError as exc:
        raise ValidationError("; ".join(exc.messages)) from exc

    Product.objects.filter(pk=locked.pk).update(current_stock=new_stock)
    locked.current_stock = new_stock

    logger.info(
        "Stock moved",
        extra={
            "product_id": str(locked.pk),
            "sku": locked.sku,
            "movement_type": movement_type,
            "quantity": quantity,
            "previous_stock": previous,
            "new_stock": new_stock,
            "reference_module": reference_module,
            "reference_number": reference_number,
        },
    )

    return StockChange(
        product=locked,
        movement=movement,
        previous_stock=previous,
        new_stock=new_stock,
    )


@transaction.atomic
def add_stock(
    product,
    quantity,
    *,
    reference_module: str = Module.MANUAL_ADJUSTMENT,
    unit_cost=None,
    reference_id="",
    reference_number: str = "",
    note: str = "",
    user=None,
) -> StockChange:
    qty = to_quantity(quantity)
    locked = _lock_product(product)
    return _write_movement(
        locked,
        movement_type=StockMovement.MovementType.IN,
        quantity=qty,
        unit_cost=unit_cost,
        reference_module=reference_module,
        reference_id=reference_id,
        reference_number=reference_number,
        note=note,
        user=user,
    )


@transaction.atomic
def reduce_stock(
    product,
    quantity,
    *,
    reference_module: str = Module.MANUAL_ADJUSTMENT,
    unit_cost=None,
    reference_id="",
    reference_number: str = "",
    note: str = "",
    user=None,
) -> StockChange:
    """
    Take `quantity` units out of stock.

    Raises InsufficientStockError (nothing written) when the product
    holds less than `quantity`.
    """
    qty = to_quantity(quantity)
    locked = _lock_product(product)
    return _write_movement(
        locked,
        movement_type=StockMovement.MovementType.OUT,
        quantity=-qty,
        unit_cost=unit_cost,
        reference_module=reference_module,
        reference_id=reference_id,
        reference_number=reference_number,
        note=note,
        user=user,
    )


@transaction.atomic
def adjust_stock(
    product,
    new_quantity,
    *,
    reference_module: str = Module.MANUAL_ADJUSTMENT,
    note: str = "",
    user=None,
) -> StockChange | None:
    """
    Set the stock level to `new_quantity` (stock count correction).

    Returns None when the level is already `new_quantity`.
    """
    target = to_quantity(new_quantity, field_name="new_quantity", allow_zero=True)
    locked = _lock_product(product)

    delta = target - int(locked.current_stock or 0)
    if delta == 0:
        return None

    return _write_movement(
        locked,
        movement_type=StockMovement.MovementType.ADJUST,
        quantity=delta,
        unit_cost=None,
        reference_module=reference_module,
        note=note,
        user=user,
    )


def check_stock_availability(items) -> list[Availability]:
    """
    Read-only availability check.

    `items`: iterable of (product, quantity) pairs. Quantities requested for
    the same product are summed.
    """
    requested: dict = {}
    order = []
    for product, quantity in items:
        pk = getattr(product, "pk", product)
        if pk not in requested:
            order.append(pk)
            requested[pk] = 0
        requested[pk] += to_quantity(quantity)

    products = Product.objects.in_bulk(order)
    result = []
    for pk in order:
        product = products.get(pk)
        if product is None:
            raise NotFoundError(f"Product {pk} not found")
        result.append(
            Availability(
                product_id=product.pk,
                sku=product.sku,
                name=product.name,
                requested=requested[pk],
                available=int(product.current_stock or 0),
            )
        )
    return result


def ensure_stock_available(items) -> list[Availability]:
    """
    Raise InsufficientStockError for the first item that is short.
    """
    availability = check_stock_availability(items)
    for row in availability:
        if not row.sufficient:
            raise InsufficientStockError(
                product=row.name,
                requested=row.requested,
                available=row.available,
            )
    return availability


def get_stock_history(product, *, date_from=None, date_to=None):
    pk = getattr(product, "pk", product)
    qs = StockMovement.objects.filter(product_id=pk).select_related("product", "performed_by")
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)
    return qs.order_by("created_at", "id")


def get_low_stock_products():
    return (
        Product.objects.filter(is_active=True, current_stock__lte=F("reorder_level"))
        .order_by("current_stock", "name")
    )
