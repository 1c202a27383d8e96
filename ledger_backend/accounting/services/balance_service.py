# accounting/services/balance_service.py

"""
BALANCE ENGINE (AUTHORITATIVE)

Read-only ledger aggregation helpers.

RULES:
- READ-ONLY: no writes, ever; every call recomputes from journal lines
- Only POSTED journal entries count (draft and void are excluded)
- Accounting timeline uses JournalEntry.entry_date (inclusive bounds)
- Polarity:
    debit-normal  -> opening + Σdebit − Σcredit
    credit-normal -> opening + Σcredit − Σdebit
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Sum
from django.db.models.functions import Coalesce

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.services.exceptions import NotFoundError, ValidationError
from accounting.services.money import ZERO, q2


def signed_balance(normal_balance: str, opening, debit, credit) -> Decimal:
    opening = q2(opening)
    if normal_balance == Account.DEBIT:
        return q2(opening + q2(debit) - q2(credit))
    return q2(opening + q2(credit) - q2(debit))


def _account(account_or_id) -> Account:
    if isinstance(account_or_id, Account):
        return account_or_id
    try:
        return Account.objects.get(pk=account_or_id)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Account {account_or_id} not found")


def _upper_bound(as_of=None, date_to=None):
    if as_of and date_to:
        return min(as_of, date_to)
    return as_of or date_to


def posted_lines(*, accounts=None, date_from=None, date_to=None):
    qs = JournalLine.objects.filter(journal_entry__status=JournalEntry.Status.POSTED)
    if accounts is not None:
        qs = qs.filter(account__in=accounts)
    if date_from:
        qs = qs.filter(journal_entry__entry_date__gte=date_from)
    if date_to:
        qs = qs.filter(journal_entry__entry_date__lte=date_to)
    return qs


def _check_range(date_from, date_to):
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from must not be after date_to")


def get_account_totals(account, *, date_from=None, date_to=None) -> tuple[Decimal, Decimal]:
    """(Σdebit, Σcredit) of posted lines for one account within the bounds."""
    account = _account(account)
    _check_range(date_from, date_to)

    aggregates = posted_lines(
        accounts=[account], date_from=date_from, date_to=date_to
    ).aggregate(
        debit_total=Coalesce(Sum("debit"), Decimal("0.00")),
        credit_total=Coalesce(Sum("credit"), Decimal("0.00")),
    )
    return q2(aggregates["debit_total"]), q2(aggregates["credit_total"])


def get_account_balance(account, *, as_of=None, date_from=None, date_to=None) -> Decimal:
    """
    Opening balance combined with the posted movement inside the bounds.

    With only `as_of` this is the point-in-time balance.
    """
    account = _account(account)
    upper = _upper_bound(as_of, date_to)
    debit, credit = get_account_totals(account, date_from=date_from, date_to=upper)
    return signed_balance(account.normal_balance, account.opening_balance, debit, credit)


def get_account_movement(account, date_from=None, date_to=None) -> dict:
    """Period activity without the opening balance."""
    account = _account(account)
    debit, credit = get_account_totals(account, date_from=date_from, date_to=date_to)
    return {
        "debit": debit,
        "credit": credit,
        "net": signed_balance(account.normal_balance, ZERO, debit, credit),
    }


def get_balances(accounts=None, *, as_of=None, date_from=None, date_to=None, include_opening: bool = True) -> dict:
    """
    Bulk balances (one grouped query, no N+1).

    Returns {account_id: {"debit", "credit", "balance"}} for every account given
    (default: all accounts), including accounts without activity.
    """
    _check_range(date_from, date_to)

    if accounts is None:
        accounts = list(Account.objects.all().order_by("code"))
    else:
        accounts = list(accounts)

    rows = (
        posted_lines(
            accounts=accounts,
            date_from=date_from,
            date_to=_upper_bound(as_of, date_to),
        )
        .values("account_id")
        .annotate(
            debit_total=Coalesce(Sum("debit"), Decimal("0.00")),
            credit_total=Coalesce(Sum("credit"), Decimal("0.00")),
        )
    )
    totals = {r["account_id"]: (q2(r["debit_total"]), q2(r["credit_total"])) for r in rows}

    result = {}
    for account in accounts:
        debit, credit = totals.get(account.id, (ZERO, ZERO))
        opening = account.opening_balance if include_opening else ZERO
        result[account.id] = {
            "debit": debit,
            "credit": credit,
            "balance": signed_balance(account.normal_balance, opening, debit, credit),
        }
    return result
