# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Create / edit / delete JournalEntry + JournalLine
- Enforce Σdebit == Σcredit (tolerance 0.01)
- Drive the lifecycle: draft -> posted -> void
- Guarantee atomicity

State machine:
- post:   draft -> posted          (posted/void -> InvalidStateError)
- void:   posted -> void           (draft -> InvalidStateError: delete drafts instead)
- update: draft only               ("Cannot update posted entry")
- delete: draft only

Entries posted by a sale or purchase (DOCUMENT_REFERENCE_TYPES) belong to
their document: void/reverse refuse them unless called with
document_cancellation=True (posting.cancel_document_posting).

Amounts are frozen at creation/update; posting never recomputes money.

Everything else (sales, purchases, payments, manual entries) must pass through here.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.services.exceptions import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from accounting.services.money import BALANCE_TOLERANCE, ZERO, q2, to_money
from accounting.services.numbering import generate_journal_number

logger = logging.getLogger(__name__)

REVERSAL_KIND = {
    JournalEntry.Kind.SALES: JournalEntry.Kind.SALES_REVERSAL,
    JournalEntry.Kind.PURCHASE: JournalEntry.Kind.PURCHASE_REVERSAL,
}

DOCUMENT_REFERENCE_TYPES = frozenset({"sale", "sale_payment", "purchase", "purchase_payment"})


# ============================================================
# HELPERS
# ============================================================


def _pk(entry_or_id):
    return getattr(entry_or_id, "pk", entry_or_id)


def _lock_entry(entry_id) -> JournalEntry:
    try:
        return JournalEntry.objects.select_for_update().get(pk=_pk(entry_id))
    except (JournalEntry.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Journal entry {_pk(entry_id)} not found")


def _ensure_not_document_owned(entry: JournalEntry, *, document_cancellation: bool) -> None:
    if document_cancellation or entry.reference_type not in DOCUMENT_REFERENCE_TYPES:
        return
    owner = entry.reference_number or entry.reference_id
    raise InvalidStateError(
        f"Journal entry {entry.number} belongs to {entry.reference_type} {owner}; "
        "cancel the document instead",
        reference_type=entry.reference_type,
        reference_id=entry.reference_id,
    )


def _resolve_account(line: dict) -> Account:
    account = line.get("account")

    if isinstance(account, Account):
        # Re-read so the active flag and snapshots reflect the current chart
        lookup = {"pk": account.pk}
    elif line.get("account_code") or isinstance(account, str):
        code = (line.get("account_code") or account or "").strip()
        lookup = {"code": code}
    elif line.get("account_id") or account is not None:
        lookup = {"pk": line.get("account_id") or account}
    else:
        raise ValidationError("Journal line is missing its account")

    try:
        resolved = Account.objects.get(**lookup)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise ValidationError(f"Invalid account reference: {next(iter(lookup.values()))!r}")

    if not resolved.is_active:
        raise ValidationError(f"Account {resolved.code} is inactive")

    return resolved


def normalize_lines(lines) -> tuple[list[dict], Decimal, Decimal]:
    """
    Validate raw line dicts and return (normalized_lines, total_debit, total_credit).

    Raises ValidationError for: fewer than 2 lines, unknown/inactive accounts,
    negative or empty amounts, "Unbalanced entry", "Zero-amount entry".
    """
    lines = list(lines or [])
    if len(lines) < 2:
        raise ValidationError("Journal entry must contain at least two lines")

    total_debit = ZERO
    total_credit = ZERO
    normalized: list[dict] = []

    for index, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            raise ValidationError("Each journal line must be an object/dict")

        account = _resolve_account(line)
        debit = to_money(line.get("debit"), field_name="debit")
        credit = to_money(line.get("credit"), field_name="credit")

        if debit < 0 or credit < 0:
            raise ValidationError(f"Line {index}: debit and credit cannot be negative")

        if debit == 0 and credit == 0:
            raise ValidationError(f"Line {index}: a line must carry a debit or a credit")

        total_debit += debit
        total_credit += credit

        normalized.append(
            {
                "account": account,
                "debit": debit,
                "credit": credit,
                "memo": (line.get("memo") or "").strip(),
            }
        )

    total_debit = q2(total_debit)
    total_credit = q2(total_credit)

    if total_debit == 0 and total_credit == 0:
        raise ValidationError("Zero-amount entry")

    if abs(total_debit - total_credit) > BALANCE_TOLERANCE:
        raise ValidationError(
            "Unbalanced entry",
            total_debit=str(total_debit),
            total_credit=str(total_credit),
        )

    return normalized, total_debit, total_credit


def _write_lines(entry: JournalEntry, normalized: list[dict]) -> None:
    JournalLine.objects.bulk_create(
        [
            JournalLine(
                journal_entry=entry,
                account=line["account"],
                line_no=line_no,
                account_code=line["account"].code,
                account_name=line["account"].name,
                debit=line["debit"],
                credit=line["credit"],
                memo=line["memo"][:255],
            )
            for line_no, line in enumerate(normalized, start=1)
        ]
    )


def _mark_posted(entry: JournalEntry) -> JournalEntry:
    entry.status = JournalEntry.Status.POSTED
    entry.posted_at = timezone.now()
    entry.save(update_fields=["status", "posted_at", "updated_at"])
    return entry


# ============================================================
# COMMANDS
# ============================================================


@transaction.atomic
def create_journal_entry(
    *,
    description: str,
    lines: list,
    entry_date=None,
    transaction_kind: str = JournalEntry.Kind.GENERAL,
    number: str | None = None,
    post: bool = False,
    reference_type: str = "",
    reference_id: str = "",
    reference_number: str = "",
    created_by=None,
) -> JournalEntry:
    """
    Create a journal entry as draft (or posted when `post=True`).

    `lines` items: {"account": Account | id | code, "debit": ..., "credit": ..., "memo": ...}
    """
    description = (description or "").strip()
    if not description:
        raise ValidationError("Journal entry description is required")

    if transaction_kind not in JournalEntry.Kind.values:
        raise ValidationError(f"Unknown transaction kind: {transaction_kind!r}")

    entry_date = entry_date or timezone.localdate()
    normalized, total_debit, total_credit = normalize_lines(lines)

    number = (number or "").strip()
    if number:
        if JournalEntry.objects.filter(number=number).exists():
            raise DuplicateError(f"Journal number {number} already exists")
    else:
        number = generate_journal_number(entry_date)

    entry = JournalEntry(
        number=number,
        entry_date=entry_date,
        description=description,
        transaction_kind=transaction_kind,
        reference_type=(reference_type or "").strip(),
        reference_id=str(reference_id or "").strip(),
        reference_number=(reference_number or "").strip(),
        total_debit=total_debit,
        total_credit=total_credit,
        status=JournalEntry.Status.DRAFT,
        created_by=created_by,
    )

    try:
        with transaction.atomic():
            entry.save()
    except IntegrityError as exc:
        raise DuplicateError(f"Journal number {number} already exists") from exc

    _write_lines(entry, normalized)

    if post:
        _mark_posted(entry)

    logger.info(
        "Journal entry created",
        extra={
            "journal_number": entry.number,
            "status": entry.status,
            "kind": entry.transaction_kind,
            "total": str(total_debit),
        },
    )
    return entry


@transaction.atomic
def post_journal_entry(entry_id) -> JournalEntry:
    entry = _lock_entry(entry_id)

    if entry.is_posted:
        raise InvalidStateError(f"Journal entry {entry.number} is already posted")
    if entry.is_void:
        raise InvalidStateError(f"Journal entry {entry.number} is void and cannot be posted")

    _mark_posted(entry)
    logger.info("Journal entry posted", extra={"journal_number": entry.number})
    return entry


@transaction.atomic
def void_journal_entry(entry_id, *, reason: str = "", document_cancellation: bool = False) -> JournalEntry:
    entry = _lock_entry(entry_id)
    _ensure_not_document_owned(entry, document_cancellation=document_cancellation)

    if entry.is_void:
        raise InvalidStateError(f"Journal entry {entry.number} is already void")
    if entry.is_draft:
        raise InvalidStateError(
            f"Journal entry {entry.number} is a draft; delete it instead of voiding"
        )

    entry.status = JournalEntry.Status.VOID
    entry.voided_at = timezone.now()
    entry.void_reason = (reason or "").strip()[:255]
    entry.save(update_fields=["status", "voided_at", "void_reason", "updated_at"])

    logger.info(
        "Journal entry voided",
        extra={"journal_number": entry.number, "reason": entry.void_reason},
    )
    return entry


@transaction.atomic
def update_journal_entry(
    entry_id,
    *,
    lines: list,
    description: str | None = None,
    entry_date=None,
    transaction_kind: str | None = None,
) -> JournalEntry:
    """Replace the lines (and optionally header fields) of a draft entry."""
    entry = _lock_entry(entry_id)

    if entry.is_posted:
        raise InvalidStateError("Cannot update posted entry")
    if entry.is_void:
        raise InvalidStateError("Cannot update void entry")

    normalized, total_debit, total_credit = normalize_lines(lines)

    if description is not None:
        entry.description = description
    if entry_date is not None:
        entry.entry_date = entry_date
    if transaction_kind is not None:
        if transaction_kind not in JournalEntry.Kind.values:
            raise ValidationError(f"Unknown transaction kind: {transaction_kind!r}")
        entry.transaction_kind = transaction_kind

    entry.total_debit = total_debit
    entry.total_credit = total_credit
    entry.save()

    entry.lines.all().delete()
    _write_lines(entry, normalized)
    return entry


@transaction.atomic
def delete_journal_entry(entry_id) -> None:
    entry = _lock_entry(entry_id)

    if not entry.is_draft:
        raise InvalidStateError(
            f"Cannot delete {entry.status} entry {entry.number}; void it instead"
        )

    number = entry.number
    entry.delete()
    logger.info("Draft journal entry deleted", extra={"journal_number": number})


@transaction.atomic
def reverse_journal_entry(
    entry_id,
    *,
    reason: str = "",
    entry_date=None,
    created_by=None,
    document_cancellation: bool = False,
) -> JournalEntry:
    """
    Post a new entry with debit/credit swapped on every line of a posted entry.

    The original stays posted; together they net to zero.
    """
    original = _lock_entry(entry_id)
    _ensure_not_document_owned(original, document_cancellation=document_cancellation)
    if not original.is_posted:
        raise InvalidStateError(
            f"Only posted entries can be reversed ({original.number} is {original.status})"
        )

    lines = [
        {
            "account": line.account,
            "debit": line.credit,
            "credit": line.debit,
            "memo": line.memo,
        }
        for line in original.lines.select_related("account").order_by("line_no", "id")
    ]

    description = f"Reversal of {original.number}"
    if reason:
        description = f"{description}: {reason}"

    return create_journal_entry(
        description=description,
        lines=lines,
        entry_date=entry_date or timezone.localdate(),
        transaction_kind=REVERSAL_KIND.get(original.transaction_kind, JournalEntry.Kind.ADJUSTMENT),
        post=True,
        reference_type=original.reference_type or "journal_entry",
        reference_id=original.reference_id or str(original.pk),
        reference_number=original.number,
        created_by=created_by,
    )


# ============================================================
# QUERIES
# ============================================================


def get_journal_entry(entry_id) -> JournalEntry:
    try:
        return JournalEntry.objects.prefetch_related("lines").get(pk=_pk(entry_id))
    except (JournalEntry.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Journal entry {_pk(entry_id)} not found")


def list_journal_entries(
    *, status=JournalEntry.Status.POSTED, transaction_kind=None, date_from=None, date_to=None
):
    """
    The general journal: posted entries with their lines, oldest first.

    status=None lists drafts and voids too, the way the journal-entries
    endpoint does for bookkeepers working the draft queue.
    """
    qs = JournalEntry.objects.prefetch_related("lines")
    if status:
        qs = qs.filter(status=status)
    if transaction_kind:
        qs = qs.filter(transaction_kind=transaction_kind)
    if date_from:
        qs = qs.filter(entry_date__gte=date_from)
    if date_to:
        qs = qs.filter(entry_date__lte=date_to)
    return qs.order_by("entry_date", "number")
