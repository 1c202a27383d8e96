# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a stocked, sellable product.

    STOCK MODEL (IMPORTANT):
    - current_stock is service-managed only (products/services/stock_ledger.py)
    - every change writes one immutable StockMovement row
    - current_stock is never negative

    PRICING:
    - cost_price drives COGS at sale approval (perpetual inventory)
    - sell_price is the default unit price on new sale lines
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    unit = models.CharField(max_length=32, default="pcs")

    cost_price = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    sell_price = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    current_stock = models.IntegerField(default=0)
    reorder_level = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_stock__gte=0),
                name="product_current_stock_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(cost_price__gte=Decimal("0.00")),
                name="product_cost_price_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(sell_price__gte=Decimal("0.00")),
                name="product_sell_price_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["sku"]),
            models.Index(fields=["name"]),
            models.Index(fields=["is_active"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if not (self.sku or "").strip():
            raise ValidationError({"sku": "sku is required"})

        if not (self.name or "").strip():
            raise ValidationError({"name": "name is required"})

        if self.cost_price is not None and Decimal(self.cost_price) < Decimal("0.00"):
            raise ValidationError({"cost_price": "cost_price cannot be negative"})

        if self.sell_price is not None and Decimal(self.sell_price) < Decimal("0.00"):
            raise ValidationError({"sell_price": "sell_price cannot be negative"})

        if self.current_stock is not None and int(self.current_stock) < 0:
            raise ValidationError({"current_stock": "current_stock cannot be negative"})

    def save(self, *args, **kwargs):
        if self.sku is not None:
            self.sku = self.sku.strip()
        if self.name is not None:
            self.name = self.name.strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def is_low_stock(self) -> bool:
        return int(self.current_stock or 0) <= int(self.reorder_level or 0)
