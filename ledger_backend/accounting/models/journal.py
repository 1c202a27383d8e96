# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY MODEL

Represents a single accounting transaction (journal header).

Lifecycle:
- draft  -> posted (irreversible balance contribution)
- posted -> void   (contribution nullified, record retained for audit)

Guarantees:
- number is unique (PREFIX-YYYYMM-NNNN)
- draft entries may be edited/deleted through the journal service
- posted/void entries are immutable except for the status fields
- entry_date is the accounting effective date used by every report
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class JournalEntry(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        POSTED = "posted", "Posted"
        VOID = "void", "Void"

    class Kind(models.TextChoices):
        SALES = "sales", "Sales"
        PURCHASE = "purchase", "Purchase"
        CASH_IN = "cash_in", "Cash In"
        CASH_OUT = "cash_out", "Cash Out"
        ADJUSTMENT = "adjustment", "Adjustment"
        GENERAL = "general", "General"
        SALES_REVERSAL = "sales_reversal", "Sales Reversal"
        PURCHASE_REVERSAL = "purchase_reversal", "Purchase Reversal"

    # Fields a posted/void entry may still change
    STATUS_FIELDS = frozenset({"status", "posted_at", "voided_at", "void_reason", "updated_at"})

    number = models.CharField(max_length=32, unique=True)

    entry_date = models.DateField(default=timezone.localdate)
    description = models.TextField(help_text="Narrative description of the journal entry")

    transaction_kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        default=Kind.GENERAL,
    )

    # Weak link back to the source document (sale, purchase, payment)
    reference_type = models.CharField(max_length=32, blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="")
    reference_number = models.CharField(max_length=64, blank=True, default="")

    total_debit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_credit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)

    posted_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.CharField(max_length=255, blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="journal_entries",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-entry_date", "-number"]
        indexes = [
            models.Index(fields=["entry_date"]),
            models.Index(fields=["status", "entry_date"]),
            models.Index(fields=["transaction_kind"]),
            models.Index(fields=["reference_type", "reference_id"]),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"{self.number} – {self.entry_date} ({self.status})"

    @property
    def is_draft(self) -> bool:
        return self.status == self.Status.DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == self.Status.POSTED

    @property
    def is_void(self) -> bool:
        return self.status == self.Status.VOID

    @property
    def is_balanced(self) -> bool:
        return abs((self.total_debit or 0) - (self.total_credit or 0)) <= Decimal("0.01")

    def clean(self):
        self.number = (self.number or "").strip()
        if not self.number:
            raise ValidationError("Journal entry number is required")

        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError("Journal entry description is required")

        if self.is_posted and not self.posted_at:
            raise ValidationError("Posted entries must carry posted_at")

    def save(self, *args, **kwargs):
        if self.pk:
            persisted = (
                type(self).objects.filter(pk=self.pk).values_list("status", flat=True).first()
            )
            if persisted and persisted != self.Status.DRAFT:
                update_fields = kwargs.get("update_fields")
                if not update_fields or not set(update_fields) <= self.STATUS_FIELDS:
                    raise ValidationError(
                        f"{persisted.capitalize()} journal entries are immutable"
                    )

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.pk:
            persisted = (
                type(self).objects.filter(pk=self.pk).values_list("status", flat=True).first()
            )
            if persisted and persisted != self.Status.DRAFT:
                raise ValidationError("Only draft journal entries can be deleted")
        return super().delete(*args, **kwargs)
