# sales/models/sale_payment.py

"""
SALE PAYMENT

Customer payment against an approved invoice. Each payment posts its own
journal entry (Cash/Bank Dr / Receivable Cr); the entry is referenced here.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from accounting.services.documents import METHOD_BANK, METHOD_CASH, PAYMENT_METHODS

from .sale import Sale


class SalePayment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_date = models.DateField(default=timezone.localdate)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
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
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sale_payments_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["payment_date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="sale_payment_amount_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["sale", "payment_date"]),
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
        return f"{self.sale.invoice_number} - {self.amount} ({self.method})"
