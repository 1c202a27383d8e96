# accounting/services/income_statement_service.py

"""
INCOME STATEMENT SERVICE (MULTI-STEP) + SIMPLE PROFIT & LOSS

Read-only projection of period movement on revenue/expense accounts.

Multi-step pipeline (accounts grouped by role):
    net sales + consignment sales             = total revenue
    total revenue − COGS                      = gross profit
    gross profit − operating expenses         = operating income
    operating income + other income
      − other expenses − finance costs
      − share of associate loss               = income before tax
    income before tax − (final tax + income tax) = net income
    net income + other comprehensive income   = total comprehensive income

Rules:
- COGS is the net debit movement of the COGS account(s) (perpetual costing)
- OCI is measured credit − debit
- revenue accounts without a role count as other income, expense accounts
  without a role as operating expenses
- ratios are percentages of total revenue, "0.00%" when revenue is zero;
  the effective tax rate is relative to income before tax
"""

from __future__ import annotations

from decimal import Decimal

from accounting.models.account import Account
from accounting.services.ledger_snapshot import LedgerSnapshot, check_period, load_snapshot
from accounting.services.money import ZERO, format_percent, q2, to_major_number, to_minor_int

Role = Account.Role

REVENUE_FALLBACK_ROLE = Role.OTHER_INCOME
EXPENSE_FALLBACK_ROLE = Role.OPERATING_EXPENSE


def _effective_role(acc) -> str:
    if acc.role:
        return acc.role
    if acc.account_type == Account.REVENUE:
        return REVENUE_FALLBACK_ROLE
    if acc.account_type == Account.EXPENSE:
        return EXPENSE_FALLBACK_ROLE
    return ""


def _section(snapshot: LedgerSnapshot, roles: tuple, *, date_from, date_to, credit_positive: bool = False) -> tuple[dict, Decimal]:
    rows = []
    total = ZERO

    for acc in snapshot.accounts:
        if acc.account_type not in (Account.REVENUE, Account.EXPENSE):
            continue
        if _effective_role(acc) not in roles:
            continue

        debit, credit = snapshot.totals(acc.id, date_from=date_from, date_to=date_to)
        if credit_positive or acc.normal_balance == Account.CREDIT:
            amount = q2(credit - debit)
        else:
            amount = q2(debit - credit)

        if amount == ZERO:
            continue

        total += amount
        rows.append(
            {
                "account_id": acc.id,
                "account_code": acc.code,
                "account_name": acc.name,
                "amount": to_major_number(amount),
            }
        )

    total = q2(total)
    return {"accounts": rows, "total": to_major_number(total)}, total


def build_income_statement(snapshot: LedgerSnapshot, *, date_from=None, date_to=None) -> dict:
    check_period(date_from, date_to)
    period = {"date_from": date_from, "date_to": date_to}

    net_sales, net_sales_total = _section(snapshot, (Role.NET_SALES,), **period)
    consignment, consignment_total = _section(snapshot, (Role.CONSIGNMENT_SALES,), **period)
    total_revenue = q2(net_sales_total + consignment_total)

    cogs, cogs_total = _section(snapshot, (Role.COGS,), **period)
    gross_profit = q2(total_revenue - cogs_total)

    opex, opex_total = _section(snapshot, (Role.OPERATING_EXPENSE,), **period)
    operating_income = q2(gross_profit - opex_total)

    other_income, other_income_total = _section(snapshot, (Role.OTHER_INCOME,), **period)
    other_expense, other_expense_total = _section(snapshot, (Role.OTHER_EXPENSE,), **period)
    finance_cost, finance_cost_total = _section(snapshot, (Role.FINANCE_COST,), **period)
    associate_loss, associate_loss_total = _section(snapshot, (Role.ASSOCIATE_LOSS_SHARE,), **period)

    income_before_tax = q2(
        operating_income
        + other_income_total
        - other_expense_total
        - finance_cost_total
        - associate_loss_total
    )

    tax, tax_total = _section(snapshot, (Role.FINAL_TAX, Role.INCOME_TAX), **period)
    net_income = q2(income_before_tax - tax_total)

    oci, oci_total = _section(
        snapshot, (Role.OTHER_COMPREHENSIVE_INCOME,), credit_positive=True, **period
    )
    total_comprehensive_income = q2(net_income + oci_total)

    summary = {
        "total_revenue": total_revenue,
        "cost_of_goods_sold": cogs_total,
        "gross_profit": gross_profit,
        "operating_expenses": opex_total,
        "operating_income": operating_income,
        "income_before_tax": income_before_tax,
        "tax_expense": tax_total,
        "net_income": net_income,
        "other_comprehensive_income": oci_total,
        "total_comprehensive_income": total_comprehensive_income,
    }

    return {
        "period": {
            "start_date": date_from.isoformat() if date_from else None,
            "end_date": date_to.isoformat() if date_to else None,
        },
        "revenue": {
            "net_sales": net_sales,
            "consignment_sales": consignment,
            "total": to_major_number(total_revenue),
        },
        "cost_of_goods_sold": cogs,
        "gross_profit": to_major_number(gross_profit),
        "operating_expenses": opex,
        "operating_income": to_major_number(operating_income),
        "other_income": other_income,
        "other_expenses": other_expense,
        "finance_costs": finance_cost,
        "associate_loss_share": associate_loss,
        "income_before_tax": to_major_number(income_before_tax),
        "tax_expense": tax,
        "net_income": to_major_number(net_income),
        "other_comprehensive_income": oci,
        "total_comprehensive_income": to_major_number(total_comprehensive_income),
        "ratios": {
            "gross_profit_margin": format_percent(gross_profit, total_revenue),
            "operating_profit_margin": format_percent(operating_income, total_revenue),
            "pretax_profit_margin": format_percent(income_before_tax, total_revenue),
            "net_profit_margin": format_percent(net_income, total_revenue),
            "comprehensive_income_margin": format_percent(total_comprehensive_income, total_revenue),
            "effective_tax_rate": format_percent(tax_total, income_before_tax),
        },
        "summary_minor": {key: to_minor_int(value) for key, value in summary.items()},
    }


def build_profit_and_loss(snapshot: LedgerSnapshot, *, date_from=None, date_to=None) -> dict:
    """Single-step view: every revenue account vs every expense account."""
    check_period(date_from, date_to)

    def rows_for(account_type):
        rows = []
        total = ZERO
        for acc in snapshot.accounts_of_type(account_type):
            amount = snapshot.movement(acc, date_from=date_from, date_to=date_to)
            if amount == ZERO:
                continue
            total += amount
            rows.append(
                {
                    "account_id": acc.id,
                    "account_code": acc.code,
                    "account_name": acc.name,
                    "amount": to_major_number(amount),
                }
            )
        return rows, q2(total)

    income_rows, income = rows_for(Account.REVENUE)
    expense_rows, expenses = rows_for(Account.EXPENSE)
    net_profit = q2(income - expenses)

    return {
        "period": {
            "start_date": date_from.isoformat() if date_from else None,
            "end_date": date_to.isoformat() if date_to else None,
        },
        "income_accounts": income_rows,
        "expense_accounts": expense_rows,
        "income": to_major_number(income),
        "expenses": to_major_number(expenses),
        "net_profit": to_major_number(net_profit),
        "income_minor": to_minor_int(income),
        "expenses_minor": to_minor_int(expenses),
        "net_profit_minor": to_minor_int(net_profit),
    }


def get_income_statement(*, date_from=None, date_to=None) -> dict:
    return build_income_statement(
        load_snapshot(as_of=date_to), date_from=date_from, date_to=date_to
    )


def get_profit_and_loss(*, date_from=None, date_to=None) -> dict:
    return build_profit_and_loss(
        load_snapshot(as_of=date_to), date_from=date_from, date_to=date_to
    )
