# sales/models/sale.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from accounting.services.documents import PAYMENT_PAID, PAYMENT_STATUSES, PAYMENT_UNPAID

User = settings.AUTH_USER_MODEL


class Sale(models.Model):
    """
    Sales invoice (credit sale, perpetual inventory).

    GUARANTEES:
    - Totals are derived by sales/services/sale_service.py (never typed in)
    - Approval posts ONE journal entry (revenue + COGS) and moves stock out
    - Financial fields are frozen once the invoice leaves draft

    Lifecycle: draft -> approved -> completed, draft|approved -> cancelled
    """

    STATUS_DRAFT = "draft"
    STATUS_APPROVED = "approved"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="System-generated invoice number (INV-YYYYMM-NNNN)",
    )

    customer_name = models.CharField(max_length=200)
    customer_address = models.CharField(max_length=255, blank=True, default="")
    customer_phone = models.CharField(max_length=50, blank=True, default="")

    invoice_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    subtotal_after_discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    remaining_balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    cogs = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Σ quantity × product cost price, computed at approval.",
    )
    gross_profit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="subtotal_after_discount − cogs.",
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    payment_status = models.CharField(max_length=16, choices=PAYMENT_STATUSES, default=PAYMENT_UNPAID)

    notes = models.TextField(blank=True, default="")

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="sales_created"
    )
    approved_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="sales_approved"
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    cancelled_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="sales_cancelled"
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-invoice_date", "-invoice_number"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=Decimal("0.00")),
                name="sale_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=Decimal("0.00")),
                name="sale_paid_amount_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["invoice_date"]),
            models.Index(fields=["status", "payment_status"]),
            models.Index(fields=["due_date", "payment_status"]),
        ]

    def clean(self):
        if not (self.invoice_number or "").strip():
            raise ValidationError({"invoice_number": "invoice_number is required"})

        if not (self.customer_name or "").strip():
            raise ValidationError({"customer_name": "customer_name is required"})

        if self.due_date and self.invoice_date and self.due_date < self.invoice_date:
            raise ValidationError({"due_date": "due_date cannot be before invoice_date"})

        if self.paid_amount is not None and self.total is not None and self.paid_amount > self.total:
            raise ValidationError({"paid_amount": "paid_amount cannot exceed total"})

        if self.status == self.STATUS_CANCELLED and not self.cancelled_at:
            raise ValidationError({"cancelled_at": "cancelled_at is required when status is cancelled"})

    def save(self, *args, **kwargs):
        if self.customer_name is not None:
            self.customer_name = self.customer_name.strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def is_draft(self) -> bool:
        return self.status == self.STATUS_DRAFT

    @property
    def is_overdue(self) -> bool:
        if self.payment_status == PAYMENT_PAID or not self.due_date:
            return False
        return timezone.localdate() > self.due_date

    def __str__(self):
        return f"{self.invoice_number} | {self.customer_name} | {self.total}"
