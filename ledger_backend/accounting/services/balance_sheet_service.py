# accounting/services/balance_sheet_service.py

"""
BALANCE SHEET SERVICE

Pure accounting read service.

Responsibilities:
- Compute balances per account as at a given date
- Classify balances into Assets, Liabilities, Equity (nonzero rows only)
- Expose the accounting equation check as `balanced`

Important:
- Revenue/Expense activity (never closed in this ledger) is represented as
  "Current Period Earnings" in Equity to keep the balance sheet correct.
- An unbalanced sheet is NOT hidden: `balanced` is false, a warning is logged,
  and validate_financials() turns it into an error for strict callers.

Contract:
- Emits numeric JSON values (not strings)
- Provides both major-unit numbers (floats, 2dp) and minor-unit ints (exact)
- Provides liabilities_plus_equity in totals for frontend convenience
"""

from __future__ import annotations

import logging

from django.utils import timezone

from accounting.models.account import Account
from accounting.services.exceptions import AccountingServiceError
from accounting.services.ledger_snapshot import LedgerSnapshot, load_snapshot
from accounting.services.money import BALANCE_TOLERANCE, ZERO, q2, to_major_number, to_minor_int

logger = logging.getLogger(__name__)

CURRENT_EARNINGS_CODE = "E-CURR"
CURRENT_EARNINGS_NAME = "Current Period Earnings"

SECTION_BY_TYPE = {
    Account.ASSET: "assets",
    Account.LIABILITY: "liabilities",
    Account.EQUITY: "equity",
}


def build_balance_sheet(snapshot: LedgerSnapshot, *, as_of=None) -> dict:
    sections = {"assets": [], "liabilities": [], "equity": []}
    totals = {"assets": ZERO, "liabilities": ZERO, "equity": ZERO}

    revenue_total = ZERO
    expense_total = ZERO

    # Inactive accounts still carry their balances; dropping them would unbalance the sheet.
    for acc in snapshot.accounts:
        bal = snapshot.balance(acc, as_of=as_of)
        if bal == ZERO:
            continue

        if acc.account_type == Account.REVENUE:
            revenue_total += bal
            continue
        if acc.account_type == Account.EXPENSE:
            expense_total += bal
            continue

        section = SECTION_BY_TYPE[acc.account_type]
        sections[section].append(
            {
                "account_id": acc.id,
                "code": acc.code,
                "name": acc.name,
                "role": acc.role,
                "balance": to_major_number(bal),
                "balance_minor": to_minor_int(bal),
            }
        )
        totals[section] += bal

    current_earnings = q2(revenue_total - expense_total)
    if current_earnings != ZERO:
        sections["equity"].append(
            {
                "account_id": None,
                "code": CURRENT_EARNINGS_CODE,
                "name": CURRENT_EARNINGS_NAME,
                "role": "",
                "balance": to_major_number(current_earnings),
                "balance_minor": to_minor_int(current_earnings),
            }
        )
        totals["equity"] += current_earnings

    assets = q2(totals["assets"])
    liabilities = q2(totals["liabilities"])
    equity = q2(totals["equity"])
    liabilities_plus_equity = q2(liabilities + equity)
    difference = q2(assets - liabilities_plus_equity)

    balanced = abs(difference) < BALANCE_TOLERANCE

    return {
        "as_of": as_of.isoformat() if as_of else None,
        **sections,
        "current_period_earnings": to_major_number(current_earnings),
        "totals": {
            "assets": to_major_number(assets),
            "liabilities": to_major_number(liabilities),
            "equity": to_major_number(equity),
            "liabilities_plus_equity": to_major_number(liabilities_plus_equity),
            "difference": to_major_number(difference),
            "assets_minor": to_minor_int(assets),
            "liabilities_minor": to_minor_int(liabilities),
            "equity_minor": to_minor_int(equity),
            "liabilities_plus_equity_minor": to_minor_int(liabilities_plus_equity),
        },
        "balanced": balanced,
    }


def generate_balance_sheet(*, as_of=None) -> dict:
    as_of = as_of or timezone.localdate()
    sheet = build_balance_sheet(load_snapshot(as_of=as_of), as_of=as_of)

    if not sheet["balanced"]:
        logger.warning(
            "Balance sheet is unbalanced",
            extra={
                "as_of": sheet["as_of"],
                "assets": sheet["totals"]["assets"],
                "liabilities_plus_equity": sheet["totals"]["liabilities_plus_equity"],
            },
        )
    return sheet


def validate_financials(*, as_of=None) -> dict:
    """Strict variant: raise when Assets != Liabilities + Equity."""
    sheet = generate_balance_sheet(as_of=as_of)
    if not sheet["balanced"]:
        raise AccountingServiceError(
            "Balance Sheet is unbalanced "
            f"(Assets={sheet['totals']['assets']} "
            f"Liabilities+Equity={sheet['totals']['liabilities_plus_equity']})"
        )
    return sheet
