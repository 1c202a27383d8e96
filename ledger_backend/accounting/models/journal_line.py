# accounting/models/journal_line.py

"""
======================================================
PATH: accounting/models/journal_line.py
======================================================
JOURNAL LINE MODEL

One debit/credit line of a journal entry.

Guarantees:
- debit and credit are non-negative; at least one is nonzero
- account code/name are snapshotted at write time (re-resolved on draft update)
- lines of posted/void entries cannot be modified or deleted
- balances only ever read lines whose entry is POSTED
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from accounting.models.account import Account
from accounting.models.journal import JournalEntry


class JournalLine(models.Model):
    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    line_no = models.PositiveIntegerField(default=1)

    account_code = models.CharField(max_length=10)
    account_name = models.CharField(max_length=150)

    debit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    credit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    memo = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        verbose_name = "Journal Line"
        verbose_name_plural = "Journal Lines"
        ordering = ["journal_entry_id", "line_no", "id"]
        indexes = [
            models.Index(fields=["account"]),
            models.Index(fields=["journal_entry", "line_no"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="chk_journal_line_non_negative",
            ),
        ]

    def __str__(self):
        if self.debit:
            return f"Dr {self.debit} → {self.account_code}"
        return f"Cr {self.credit} → {self.account_code}"

    def clean(self):
        if (self.debit or 0) < 0 or (self.credit or 0) < 0:
            raise ValidationError("Journal line amounts must be non-negative")

        if not (self.debit or 0) and not (self.credit or 0):
            raise ValidationError("Journal line must carry a debit or a credit amount")

    def save(self, *args, **kwargs):
        if self.journal_entry_id and not self.journal_entry.is_draft:
            raise ValidationError("Lines of posted or void journal entries are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.journal_entry_id and not self.journal_entry.is_draft:
            raise ValidationError("Lines of posted or void journal entries are immutable")
        return super().delete(*args, **kwargs)
