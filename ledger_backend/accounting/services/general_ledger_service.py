# accounting/services/general_ledger_service.py

"""
GENERAL LEDGER SERVICE

Chronological posted-line listing per account with a running balance.

Rules:
- running balance is seeded with the balance carried into the period
  (opening balance + posted movement before date_from)
- each line moves the balance per the account polarity
- lines are ordered by (entry_date, journal number, line order)
"""

from __future__ import annotations

from accounting.models.account import Account
from accounting.services.balance_service import signed_balance
from accounting.services.exceptions import NotFoundError
from accounting.services.ledger_snapshot import AccountRow, LedgerSnapshot, check_period, load_snapshot
from accounting.services.money import ZERO, q2, to_major_number, to_minor_int


def _account_ledger(snapshot: LedgerSnapshot, acc: AccountRow, *, date_from=None, date_to=None) -> dict:
    opening = snapshot.balance_before(acc, date_from)
    running = opening
    total_debit = ZERO
    total_credit = ZERO
    rows = []

    for line in snapshot.lines_for(acc.id, date_from=date_from, date_to=date_to):
        running = q2(running + signed_balance(acc.normal_balance, ZERO, line.debit, line.credit))
        total_debit += line.debit
        total_credit += line.credit
        rows.append(
            {
                "date": line.entry_date.isoformat(),
                "journal_entry_id": line.entry_id,
                "number": line.number,
                "description": line.description,
                "memo": line.memo,
                "debit": to_major_number(line.debit),
                "credit": to_major_number(line.credit),
                "balance": to_major_number(running),
                "balance_minor": to_minor_int(running),
            }
        )

    return {
        "account": {
            "id": acc.id,
            "code": acc.code,
            "name": acc.name,
            "account_type": acc.account_type,
            "normal_balance": acc.normal_balance,
        },
        "opening_balance": to_major_number(opening),
        "opening_balance_minor": to_minor_int(opening),
        "lines": rows,
        "totals": {
            "debit": to_major_number(total_debit),
            "credit": to_major_number(total_credit),
        },
        "closing_balance": to_major_number(running),
        "closing_balance_minor": to_minor_int(running),
    }


def build_general_ledger(snapshot: LedgerSnapshot, *, account_id=None, date_from=None, date_to=None) -> dict:
    """
    Single account when `account_id` is given, otherwise every active account
    that has an opening balance or activity in the period.
    """
    check_period(date_from, date_to)
    period = {
        "start_date": date_from.isoformat() if date_from else None,
        "end_date": date_to.isoformat() if date_to else None,
    }

    if account_id is not None:
        try:
            acc = snapshot.account(int(account_id))
        except (KeyError, TypeError, ValueError):
            raise NotFoundError(f"Account {account_id} not found")
        return {"period": period, **_account_ledger(snapshot, acc, date_from=date_from, date_to=date_to)}

    ledgers = []
    for acc in snapshot.active_accounts():
        ledger = _account_ledger(snapshot, acc, date_from=date_from, date_to=date_to)
        if not ledger["lines"] and ledger["opening_balance_minor"] == 0:
            continue
        ledgers.append(ledger)

    return {"period": period, "accounts": ledgers}


def get_general_ledger(*, account_id=None, account_code: str | None = None, date_from=None, date_to=None) -> dict:
    if account_code:
        account_id = (
            Account.objects.filter(code=account_code.strip()).values_list("id", flat=True).first()
        )
        if account_id is None:
            raise NotFoundError(f"Account {account_code} not found")

    snapshot = load_snapshot(as_of=date_to)
    return build_general_ledger(
        snapshot, account_id=account_id, date_from=date_from, date_to=date_to
    )
