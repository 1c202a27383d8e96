# accounting/services/aging.py

"""
Receivable / payable aging.

Shared by the sales (receivables) and purchases (payables) reports.
Buckets by days past the due date (document date when no due date is set):
    current (not yet due), 1-30, 31-60, 61-90, over_90
"""

from __future__ import annotations

from decimal import Decimal

from django.utils import timezone

from accounting.services.money import ZERO, q2, to_major_number, to_minor_int

CURRENT = "current"
DAYS_1_30 = "1_30"
DAYS_31_60 = "31_60"
DAYS_61_90 = "61_90"
OVER_90 = "over_90"

BUCKETS = (CURRENT, DAYS_1_30, DAYS_31_60, DAYS_61_90, OVER_90)


def bucket_for(days_overdue: int) -> str:
    if days_overdue <= 0:
        return CURRENT
    if days_overdue <= 30:
        return DAYS_1_30
    if days_overdue <= 60:
        return DAYS_31_60
    if days_overdue <= 90:
        return DAYS_61_90
    return OVER_90


def build_aging(documents, *, as_of=None) -> dict:
    """
    `documents` is an iterable of dicts with keys:
        id, number, party, document_date, due_date, total, remaining
    """
    as_of = as_of or timezone.localdate()
    totals = {bucket: ZERO for bucket in BUCKETS}
    rows = []

    for doc in documents:
        remaining = q2(Decimal(doc["remaining"]))
        if remaining <= ZERO:
            continue

        due = doc.get("due_date") or doc["document_date"]
        days_overdue = (as_of - due).days
        bucket = bucket_for(days_overdue)
        totals[bucket] += remaining

        rows.append(
            {
                "id": doc["id"],
                "number": doc["number"],
                "party": doc.get("party", ""),
                "document_date": doc["document_date"].isoformat(),
                "due_date": due.isoformat(),
                "days_overdue": max(days_overdue, 0),
                "bucket": bucket,
                "total": to_major_number(doc["total"]),
                "remaining": to_major_number(remaining),
            }
        )

    grand_total = q2(sum(totals.values(), ZERO))
    return {
        "as_of_date": as_of.isoformat(),
        "buckets": {bucket: to_major_number(amount) for bucket, amount in totals.items()},
        "buckets_minor": {bucket: to_minor_int(amount) for bucket, amount in totals.items()},
        "total_outstanding": to_major_number(grand_total),
        "total_outstanding_minor": to_minor_int(grand_total),
        "documents": rows,
    }
