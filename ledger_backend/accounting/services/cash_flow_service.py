# accounting/services/cash_flow_service.py

"""
CASH FLOW STATEMENT (DIRECT, ENTRY-BASED)

- Cash accounts: role cash/bank (or category cash/bank when no role is set)
- Opening cash: cash balances carried into the period
- Every posted entry in the period touching a cash account is examined:
    net cash = Σ cash debits − Σ cash credits
  and categorized by its non-cash counter lines (cash_flow_classifier)
- Closing cash = opening + Σ(operating + investing + financing)

Entries whose cash lines net to zero (e.g. cash <-> bank transfers) move
nothing but are still counted in `entries_examined`.
"""

from __future__ import annotations

from django.conf import settings

from accounting.services import cash_flow_classifier as classifier
from accounting.services.exceptions import ValidationError
from accounting.services.ledger_snapshot import LedgerSnapshot, check_period, load_snapshot
from accounting.services.money import ZERO, q2, to_major_number, to_minor_int


def build_cash_flow(snapshot: LedgerSnapshot, *, date_from=None, date_to=None, allocation: str = classifier.FIRST_MATCH) -> dict:
    check_period(date_from, date_to)
    if allocation not in classifier.ALLOCATION_MODES:
        raise ValidationError(f"Unknown cash flow allocation mode: {allocation!r}")

    cash_accounts = [acc for acc in snapshot.accounts if classifier.is_cash_account(acc)]
    cash_ids = {acc.id for acc in cash_accounts}

    opening = q2(sum((snapshot.balance_before(acc, date_from) for acc in cash_accounts), ZERO))

    buckets = {
        category: {"inflow": ZERO, "outflow": ZERO, "net": ZERO, "entries": []}
        for category in classifier.CATEGORIES
    }
    examined = 0
    zero_net = 0

    for entry_id, lines in snapshot.entries(date_from=date_from, date_to=date_to).items():
        cash_lines = [line for line in lines if line.account_id in cash_ids]
        if not cash_lines:
            continue

        examined += 1
        net_cash = q2(sum((line.debit - line.credit for line in cash_lines), ZERO))
        counter_lines = [line for line in lines if line.account_id not in cash_ids]

        if allocation == classifier.PRO_RATA:
            shares = classifier.apportion(
                net_cash,
                [(snapshot.account(line.account_id), line.debit + line.credit) for line in counter_lines],
            )
        else:
            category = classifier.classify_entry(
                snapshot.account(line.account_id) for line in counter_lines
            )
            shares = {category: net_cash}

        if net_cash == ZERO:
            zero_net += 1
            continue

        head = lines[0]
        for category, amount in shares.items():
            if amount == ZERO:
                continue
            bucket = buckets[category]
            bucket["net"] += amount
            if amount > 0:
                bucket["inflow"] += amount
            else:
                bucket["outflow"] += -amount
            bucket["entries"].append(
                {
                    "journal_entry_id": entry_id,
                    "number": head.number,
                    "date": head.entry_date.isoformat(),
                    "description": head.description,
                    "amount": to_major_number(amount),
                }
            )

    net_change = q2(sum((bucket["net"] for bucket in buckets.values()), ZERO))
    closing = q2(opening + net_change)

    ledger_closing = q2(
        sum((snapshot.balance(acc, as_of=date_to) for acc in cash_accounts), ZERO)
    )

    return {
        "period": {
            "start_date": date_from.isoformat() if date_from else None,
            "end_date": date_to.isoformat() if date_to else None,
        },
        "allocation": allocation,
        "cash_accounts": [{"account_id": acc.id, "code": acc.code, "name": acc.name} for acc in cash_accounts],
        "opening_cash": to_major_number(opening),
        **{
            category: {
                "inflow": to_major_number(bucket["inflow"]),
                "outflow": to_major_number(bucket["outflow"]),
                "net": to_major_number(bucket["net"]),
                "net_minor": to_minor_int(bucket["net"]),
                "entries": bucket["entries"],
            }
            for category, bucket in buckets.items()
        },
        "net_change": to_major_number(net_change),
        "closing_cash": to_major_number(closing),
        "closing_cash_minor": to_minor_int(closing),
        "reconciled": to_minor_int(closing) == to_minor_int(ledger_closing),
        "entries_examined": examined,
        "zero_net_entries": zero_net,
    }


def get_cash_flow(*, date_from=None, date_to=None, allocation: str | None = None) -> dict:
    allocation = allocation or getattr(settings, "LEDGER_CASH_FLOW_ALLOCATION", classifier.FIRST_MATCH)
    return build_cash_flow(
        load_snapshot(as_of=date_to),
        date_from=date_from,
        date_to=date_to,
        allocation=allocation,
    )
