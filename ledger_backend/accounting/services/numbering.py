# accounting/services/numbering.py

"""
DOCUMENT NUMBERING

Month-scoped sequential numbers: PREFIX-YYYYMM-NNNN
(journal entries "JU", sales invoices "INV", purchase orders "PO").

Concurrency:
- The counter row for the scoped prefix is locked with select_for_update()
  and incremented inside the caller's transaction.
- The next value is max(counter, highest number already stored) + 1, so
  numbers entered by hand or imported never collide with generated ones.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.models.sequence import NumberSequence
from accounting.services.exceptions import ValidationError

logger = logging.getLogger(__name__)


def scoped_prefix(prefix: str, on_date) -> str:
    prefix = (prefix or "").strip().upper()
    if not prefix:
        raise ValidationError("Number prefix is required")
    return f"{prefix}-{on_date:%Y%m}"


def highest_existing_sequence(model, field: str, scoped: str) -> int:
    head = f"{scoped}-"
    values = model.objects.filter(**{f"{field}__startswith": head}).values_list(
        field, flat=True
    )

    best = 0
    for value in values:
        tail = value[len(head):]
        if tail.isdigit():
            best = max(best, int(tail))
    return best


@transaction.atomic
def generate_number(prefix: str, *, on_date=None, width: int = 4, model=None, field: str = "number") -> str:
    """
    Reserve and return the next number for `prefix` in the month of `on_date`.

    `model`/`field` point at the documents already carrying numbers for this
    prefix; their highest sequence seeds the counter.
    """
    on_date = on_date or timezone.localdate()
    scoped = scoped_prefix(prefix, on_date)

    sequence, _ = NumberSequence.objects.get_or_create(prefix=scoped)
    sequence = NumberSequence.objects.select_for_update().get(pk=sequence.pk)

    stored_max = highest_existing_sequence(model, field, scoped) if model is not None else 0
    next_value = max(int(sequence.last_value or 0), stored_max) + 1

    sequence.last_value = next_value
    sequence.save(update_fields=["last_value", "updated_at"])

    number = f"{scoped}-{next_value:0{width}d}"
    logger.debug("Reserved document number", extra={"number": number, "prefix": scoped})
    return number


def generate_journal_number(on_date=None) -> str:
    return generate_number(
        getattr(settings, "LEDGER_JOURNAL_PREFIX", "JU"),
        on_date=on_date,
        model=JournalEntry,
        field="number",
    )
