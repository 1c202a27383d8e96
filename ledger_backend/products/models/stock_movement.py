# products/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable stock ledger entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- new_stock == previous_stock + quantity (quantity is signed)
- new_stock is never negative
- Movement direction validated against the sign of quantity
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .product import Product


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "IN", "Stock In"
        OUT = "OUT", "Stock Out"
        ADJUST = "ADJUST", "Adjustment"

    class ReferenceModule(models.TextChoices):
        PURCHASE = "purchase", "Purchase"
        SALES = "sales", "Sales"
        MANUAL_ADJUSTMENT = "manual_adjustment", "Manual Adjustment"
        INITIAL_STOCK = "initial_stock", "Initial Stock"
        CORRECTION = "correction", "Correction"
        PURCHASE_CANCEL = "purchase_cancel", "Purchase Cancellation"
        SALES_RETURN = "sales_return", "Sales Return"
        DAMAGED = "damaged", "Damaged"
        TRANSFER = "transfer", "Transfer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_movements"
    )

    movement_type = models.CharField(max_length=8, choices=MovementType.choices)

    # Signed: positive for IN, negative for OUT, either for ADJUST
    quantity = models.IntegerField()
    previous_stock = models.IntegerField()
    new_stock = models.IntegerField()

    unit_cost = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    total_cost = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    reference_module = models.CharField(
        max_length=32, choices=ReferenceModule.choices
    )
    reference_id = models.CharField(max_length=64, blank=True, default="")
    reference_number = models.CharField(max_length=64, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(new_stock__gte=0),
                name="stock_movement_new_stock_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(new_stock=models.F("previous_stock") + models.F("quantity")),
                name="stock_movement_stock_arithmetic",
            ),
        ]
        indexes = [
            models.Index(fields=["created_at"]),
            models.Index(fields=["movement_type"]),
            models.Index(fields=["reference_module"]),
            models.Index(fields=["product", "created_at"]),
            models.Index(fields=["reference_module", "reference_id"]),
        ]

    def clean(self):
        if self.quantity == 0:
            raise ValidationError("quantity cannot be zero")

        if self.movement_type == self.MovementType.IN and self.quantity < 0:
            raise ValidationError("IN movements require a positive quantity")

        if self.movement_type == self.MovementType.OUT and self.quantity > 0:
            raise ValidationError("OUT movements require a negative quantity")

        if self.new_stock != self.previous_stock + self.quantity:
            raise ValidationError("new_stock must equal previous_stock + quantity")

        if self.new_stock < 0:
            raise ValidationError("new_stock cannot be negative")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.movement_type} | {self.quantity}"
