# accounting/services/overview_service.py

"""
ACCOUNTING OVERVIEW KPI SERVICE

Ledger-driven KPI aggregation for dashboards.

Contract:
- Returns numeric JSON-safe values (floats for major units + ints for minor units)
- Ratios: plain floats (current ratio, debt-to-equity, asset turnover) or
  "NN.NN%" strings (return on assets, profit margin); 0 when not computable
- Read-only: no mutations, no postings.
"""

from __future__ import annotations

from collections import OrderedDict

from django.utils import timezone

from accounting.models.account import Account
from accounting.services.cash_flow_classifier import is_cash_account
from accounting.services.ledger_snapshot import LedgerSnapshot, check_period, load_snapshot
from accounting.services.money import ZERO, format_percent, q2, ratio, to_major_number, to_minor_int

Role = Account.Role

CURRENT_ASSET_ROLES = (
    Role.CASH,
    Role.BANK,
    Role.RECEIVABLE,
    Role.INVENTORY,
    Role.OTHER_CURRENT_ASSET,
)
CURRENT_LIABILITY_ROLES = (Role.PAYABLE_CURRENT, Role.TAX_PAYABLE)


def build_overview(snapshot: LedgerSnapshot, *, as_of=None, date_from=None, date_to=None) -> dict:
    check_period(date_from, date_to)

    totals = {t: ZERO for t, _ in Account.ACCOUNT_TYPES}
    current_assets = ZERO
    current_liabilities = ZERO
    cash_position = ZERO

    for acc in snapshot.accounts:
        bal = snapshot.balance(acc, as_of=as_of)
        totals[acc.account_type] += bal
        if acc.role in CURRENT_ASSET_ROLES:
            current_assets += bal
        if acc.role in CURRENT_LIABILITY_ROLES:
            current_liabilities += bal
        if is_cash_account(acc):
            cash_position += bal

    assets = q2(totals[Account.ASSET])
    liabilities = q2(totals[Account.LIABILITY])
    equity = q2(totals[Account.EQUITY] + totals[Account.REVENUE] - totals[Account.EXPENSE])

    revenue = ZERO
    expenses = ZERO
    trend: OrderedDict[str, dict] = OrderedDict()

    for line in snapshot.lines:
        if date_from and line.entry_date < date_from:
            continue
        if date_to and line.entry_date > date_to:
            continue

        acc = snapshot.account(line.account_id)
        if acc.account_type not in (Account.REVENUE, Account.EXPENSE):
            continue

        month = f"{line.entry_date:%Y-%m}"
        bucket = trend.setdefault(month, {"revenue": ZERO, "expenses": ZERO})
        if acc.account_type == Account.REVENUE:
            amount = line.credit - line.debit
            revenue += amount
            bucket["revenue"] += amount
        else:
            amount = line.debit - line.credit
            expenses += amount
            bucket["expenses"] += amount

    revenue = q2(revenue)
    expenses = q2(expenses)
    net_profit = q2(revenue - expenses)

    return {
        "as_of_date": as_of.isoformat() if as_of else None,
        "period": {
            "start_date": date_from.isoformat() if date_from else None,
            "end_date": date_to.isoformat() if date_to else None,
        },
        "assets": to_major_number(assets),
        "liabilities": to_major_number(liabilities),
        "equity": to_major_number(equity),
        "cash": to_major_number(cash_position),
        "revenue": to_major_number(revenue),
        "expenses": to_major_number(expenses),
        "net_profit": to_major_number(net_profit),
        "assets_minor": to_minor_int(assets),
        "liabilities_minor": to_minor_int(liabilities),
        "equity_minor": to_minor_int(equity),
        "cash_minor": to_minor_int(cash_position),
        "revenue_minor": to_minor_int(revenue),
        "expenses_minor": to_minor_int(expenses),
        "net_profit_minor": to_minor_int(net_profit),
        "ratios": {
            "current_ratio": ratio(current_assets, current_liabilities),
            "debt_to_equity": ratio(liabilities, equity),
            "asset_turnover": ratio(revenue, assets),
            "return_on_assets": format_percent(net_profit, assets),
            "profit_margin": format_percent(net_profit, revenue),
        },
        "monthly_trend": [
            {
                "month": month,
                "revenue": to_major_number(values["revenue"]),
                "expenses": to_major_number(values["expenses"]),
                "net_profit": to_major_number(values["revenue"] - values["expenses"]),
            }
            for month, values in trend.items()
        ],
    }


def get_accounting_overview_kpis(*, as_of=None, date_from=None, date_to=None) -> dict:
    """
    KPI snapshot using the ledger.

    - Balance sheet KPIs are computed as of `as_of` (default: today).
    - P&L KPIs and the monthly trend cover [date_from, date_to].
    """
    as_of = as_of or timezone.localdate()
    bound = max(d for d in (as_of, date_to) if d)
    return build_overview(load_snapshot(as_of=bound), as_of=as_of, date_from=date_from, date_to=date_to)
