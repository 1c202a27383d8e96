# purchases/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from accounting.services.documents import (
    METHOD_BANK,
    METHOD_CASH,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    PAYMENT_UNPAID,
)
from products.models.product import Product

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


User = settings.AUTH_USER_MODEL


class Purchase(models.Model):
    """
    Purchase order header (credit purchase, perpetual inventory).

    Approval is performed by services:
    - posts Inventory Dr / Accounts Payable Cr (one posted entry)
    - moves stock IN per line at the purchase unit cost
    - marks the order APPROVED; RECEIVED is a later confirmation step
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    STATUS_DRAFT = "draft"
    STATUS_APPROVED = "approved"
    STATUS_RECEIVED = "received"
    STATUS_CANCELLED = "cancelled"

    STATUSES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_RECEIVED, "Received"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    order_number = models.CharField(max_length=32, unique=True)

    supplier_name = models.CharField(max_length=200)
    supplier_address = models.CharField(max_length=255, blank=True, default="")
    supplier_phone = models.CharField(max_length=50, blank=True, default="")

    order_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_DRAFT)
    payment_status = models.CharField(max_length=16, choices=PAYMENT_STATUSES, default=PAYMENT_UNPAID)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    subtotal_after_discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    remaining_balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    notes = models.TextField(blank=True, default="")

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    # Audit
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases_created",
    )
    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases_approved",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    received_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases_received",
    )
    received_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchases_cancelled",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-order_date", "-order_number"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=Decimal("0.00")),
                name="purchase_subtotal_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(total__gte=Decimal("0.00")),
                name="purchase_total_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["order_date"]),
            models.Index(fields=["status", "payment_status"]),
            models.Index(fields=["due_date", "payment_status"]),
        ]

    def clean(self):
        if not (self.order_number or "").strip():
            raise ValidationError({"order_number": "order_number is required"})

        if not (self.supplier_name or "").strip():
            raise ValidationError({"supplier_name": "supplier_name is required"})

        if self.due_date and self.order_date and self.due_date < self.order_date:
            raise ValidationError({"due_date": "due_date cannot be before order_date"})

        if self.paid_amount is not None and self.total is not None and self.paid_amount > self.total:
            raise ValidationError({"paid_amount": "paid_amount cannot exceed total"})

        if self.status == self.STATUS_RECEIVED and not self.received_at:
            raise ValidationError(
                {"received_at": "received_at is required when status is RECEIVED"}
            )

        if self.status == self.STATUS_CANCELLED and not self.cancelled_at:
            raise ValidationError(
                {"cancelled_at": "cancelled_at is required when status is CANCELLED"}
            )

    def save(self, *args, **kwargs):
        if self.order_number is not None:
            self.order_number = self.order_number.strip()
        if self.supplier_name is not None:
            self.supplier_name = self.supplier_name.strip()

        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def is_draft(self) -> bool:
        return self.status == self.STATUS_DRAFT

    def __str__(self):
        return f"{self.order_number} ({self.supplier_name})"


class PurchaseItem(models.Model):
    """
    Purchase order line. unit_price is the purchase (cost) price per unit.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase = models.ForeignKey(
        Purchase,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="purchase_items",
    )

    product_sku = models.CharField(max_length=128, blank=True, default="")
    product_name = models.CharField(max_length=255, blank=True, default="")
    unit = models.CharField(max_length=32, blank=True, default="")

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    line_no = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["line_no"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="purchase_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=Decimal("0.00")),
                name="purchase_item_unit_price_nonnegative",
            ),
        ]

    def clean(self):
        if self.unit_price is not None and self.unit_price < Decimal("0.00"):
            raise ValidationError({"unit_price": "unit_price cannot be negative"})

    @property
    def unit_cost(self) -> Decimal:
        """Net cost per unit after the line discount."""
        if not self.quantity:
            return Decimal("0.00")
        return _money(Decimal(str(self.subtotal)) / Decimal(self.quantity))

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product_name or self.product_id} x {self.quantity}"


class PurchasePayment(models.Model):
    """
    Supplier payment to settle Accounts Payable on one purchase order.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase = models.ForeignKey(
        Purchase,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_date = models.DateField(default=timezone.localdate)
    amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    method = models.CharField(max_length=16, choices=PAYMENT_METHODS, default=METHOD_CASH)
    note = models.CharField(max_length=255, blank=True, default="")

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_payments_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["payment_date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="purchase_payment_amount_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["purchase", "payment_date"]),
        ]

    def clean(self):
        if self.method not in {METHOD_CASH, METHOD_BANK}:
            raise ValidationError({"method": "Invalid payment method"})

        if self.amount is not None and self.amount <= Decimal("0.00"):
            raise ValidationError({"amount": "amount must be > 0"})

    def save(self, *args, **kwargs):
        if self.note is not None:
            self.note = self.note.strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.purchase.order_number} - {self.amount}"
