# accounting/services/equity_statement_service.py

"""
STATEMENT OF CHANGES IN EQUITY

Per equity account:
    beginning (carried into the period) + additions (period credits)
    − reductions (period debits) = ending

Period net income (multi-step income statement pipeline) and other
comprehensive income are rolled into the total ending equity.
Revenue/expense balances never closed before the period start are carried
as "unclosed prior earnings" so the ending total ties to the balance sheet
equity at the period end.
"""

from __future__ import annotations

from decimal import Decimal

from accounting.models.account import Account
from accounting.services.income_statement_service import build_income_statement
from accounting.services.ledger_snapshot import LedgerSnapshot, check_period, load_snapshot
from accounting.services.money import ZERO, q2, to_major_number, to_minor_int

Role = Account.Role

EQUITY_GROUPS = (
    (Role.SHARE_CAPITAL, "share_capital"),
    (Role.ADDITIONAL_CAPITAL, "additional_capital"),
    (Role.RETAINED_EARNINGS, "retained_earnings"),
    (Role.OTHER_EQUITY, "other_equity"),
)


def _group_for(acc) -> str:
    for role, group in EQUITY_GROUPS:
        if acc.role == role:
            return group
    return "other_equity"


def _unclosed_earnings_before(snapshot: LedgerSnapshot, day) -> Decimal:
    total = ZERO
    for acc in snapshot.accounts:
        if acc.account_type == Account.REVENUE:
            total += snapshot.balance_before(acc, day)
        elif acc.account_type == Account.EXPENSE:
            total -= snapshot.balance_before(acc, day)
    return q2(total)


def build_equity_statement(snapshot: LedgerSnapshot, *, date_from=None, date_to=None) -> dict:
    check_period(date_from, date_to)

    groups = {group: {"accounts": [], "beginning": ZERO, "ending": ZERO} for _, group in EQUITY_GROUPS}
    beginning_total = ZERO
    additions_total = ZERO
    reductions_total = ZERO
    ending_total = ZERO

    for acc in snapshot.accounts_of_type(Account.EQUITY):
        beginning = snapshot.balance_before(acc, date_from)
        reductions, additions = snapshot.totals(acc.id, date_from=date_from, date_to=date_to)
        ending = q2(beginning + additions - reductions)

        if not acc.is_active and beginning == ZERO and ending == ZERO and not additions and not reductions:
            continue

        group = groups[_group_for(acc)]
        group["accounts"].append(
            {
                "account_id": acc.id,
                "account_code": acc.code,
                "account_name": acc.name,
                "beginning_balance": to_major_number(beginning),
                "additions": to_major_number(additions),
                "reductions": to_major_number(reductions),
                "ending_balance": to_major_number(ending),
            }
        )
        group["beginning"] += beginning
        group["ending"] += ending

        beginning_total += beginning
        additions_total += additions
        reductions_total += reductions
        ending_total += ending

    income = build_income_statement(snapshot, date_from=date_from, date_to=date_to)
    net_income = q2(Decimal(income["summary_minor"]["net_income"]) / 100)
    oci = q2(Decimal(income["summary_minor"]["other_comprehensive_income"]) / 100)
    prior_earnings = _unclosed_earnings_before(snapshot, date_from)

    total_beginning_equity = q2(beginning_total + prior_earnings)
    total_ending_equity = q2(ending_total + prior_earnings + net_income + oci)

    return {
        "period": {
            "start_date": date_from.isoformat() if date_from else None,
            "end_date": date_to.isoformat() if date_to else None,
        },
        "groups": {
            name: {
                "accounts": data["accounts"],
                "beginning_balance": to_major_number(data["beginning"]),
                "ending_balance": to_major_number(data["ending"]),
            }
            for name, data in groups.items()
        },
        "totals": {
            "beginning_balance": to_major_number(beginning_total),
            "additions": to_major_number(additions_total),
            "reductions": to_major_number(reductions_total),
            "ending_balance": to_major_number(ending_total),
        },
        "unclosed_prior_earnings": to_major_number(prior_earnings),
        "net_income": to_major_number(net_income),
        "other_comprehensive_income": to_major_number(oci),
        "total_beginning_equity": to_major_number(total_beginning_equity),
        "total_ending_equity": to_major_number(total_ending_equity),
        "total_ending_equity_minor": to_minor_int(total_ending_equity),
    }


def get_equity_statement(*, date_from=None, date_to=None) -> dict:
    return build_equity_statement(
        load_snapshot(as_of=date_to), date_from=date_from, date_to=date_to
    )
