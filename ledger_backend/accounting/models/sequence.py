# accounting/models/sequence.py

from __future__ import annotations

from django.db import models


class NumberSequence(models.Model):
    """
    Counter row for one month-scoped document prefix (e.g. "JU-202501").

    Rows are only incremented under select_for_update() by
    accounting.services.numbering, so two callers never receive the same value.
    """

    prefix = models.CharField(max_length=32, unique=True)
    last_value = models.PositiveIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["prefix"]
        verbose_name = "Number Sequence"
        verbose_name_plural = "Number Sequences"

    def __str__(self):
        return f"{self.prefix} @ {self.last_value}"
