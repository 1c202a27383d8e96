# accounting/services/cash_flow_classifier.py

"""
CASH FLOW CATEGORIZATION

Decides whether the cash movement of a journal entry is OPERATING,
INVESTING or FINANCING by looking at its non-cash counter lines.

Per counter line:
- the account role decides when the account has one
- otherwise the default-chart code prefixes decide (first match)
- lines matching neither are skipped

Entry policy "first_match": the first counter line that classifies decides
for the whole entry; no match -> OPERATING.
Entry policy "pro_rata": the net cash is apportioned across every counter
line by line amount, each share classified on its own.
"""

from __future__ import annotations

import re
from decimal import Decimal

from accounting.models.account import Account
from accounting.services.money import ZERO, q2

OPERATING = "operating"
INVESTING = "investing"
FINANCING = "financing"

CATEGORIES = (OPERATING, INVESTING, FINANCING)
DEFAULT_CATEGORY = OPERATING

FIRST_MATCH = "first_match"
PRO_RATA = "pro_rata"
ALLOCATION_MODES = (FIRST_MATCH, PRO_RATA)

Role = Account.Role

CASH_ROLES = (Role.CASH, Role.BANK)

CATEGORY_BY_ROLE = {
    Role.NET_SALES: OPERATING,
    Role.CONSIGNMENT_SALES: OPERATING,
    Role.OTHER_INCOME: OPERATING,
    Role.COGS: OPERATING,
    Role.OPERATING_EXPENSE: OPERATING,
    Role.OTHER_EXPENSE: OPERATING,
    Role.FINANCE_COST: OPERATING,
    Role.FINAL_TAX: OPERATING,
    Role.INCOME_TAX: OPERATING,
    Role.RECEIVABLE: OPERATING,
    Role.INVENTORY: OPERATING,
    Role.OTHER_CURRENT_ASSET: OPERATING,
    Role.PAYABLE_CURRENT: OPERATING,
    Role.TAX_PAYABLE: OPERATING,
    Role.FIXED_ASSET: INVESTING,
    Role.SHARE_CAPITAL: FINANCING,
    Role.ADDITIONAL_CAPITAL: FINANCING,
    Role.RETAINED_EARNINGS: FINANCING,
    Role.OTHER_EQUITY: FINANCING,
    Role.LONG_TERM_LIABILITY: FINANCING,
}

# Fallback for accounts without a role, evaluated in order
CODE_PREFIX_RULES = (
    (re.compile(r"^4-"), OPERATING),
    (re.compile(r"^5-100[124]$"), OPERATING),
    (re.compile(r"^2-11\d{2}"), OPERATING),
    (re.compile(r"^1-11\d{2}"), OPERATING),
    (re.compile(r"^1-2"), INVESTING),
    (re.compile(r"^3-110[14]$"), FINANCING),
    (re.compile(r"^2-2"), FINANCING),
)


def is_cash_account(acc) -> bool:
    if acc.role:
        return acc.role in CASH_ROLES
    return acc.category in (Account.Category.CASH, Account.Category.BANK)


def classify_account(acc) -> str | None:
    if acc.role:
        return CATEGORY_BY_ROLE.get(acc.role)

    for pattern, category in CODE_PREFIX_RULES:
        if pattern.match(acc.code or ""):
            return category
    return None


def classify_entry(counter_accounts) -> str:
    for acc in counter_accounts:
        category = classify_account(acc)
        if category is not None:
            return category
    return DEFAULT_CATEGORY


def apportion(net_cash: Decimal, counter_lines) -> dict:
    """
    Split `net_cash` across (account, weight) pairs pro rata.

    Rounding remainder goes to the last share so the parts sum exactly.
    Returns {category: amount}.
    """
    result = {category: ZERO for category in CATEGORIES}
    pairs = [(acc, Decimal(weight)) for acc, weight in counter_lines if weight]
    total_weight = sum((weight for _, weight in pairs), ZERO)

    if not pairs or total_weight == 0:
        result[DEFAULT_CATEGORY] = q2(net_cash)
        return result

    allocated = ZERO
    for index, (acc, weight) in enumerate(pairs):
        if index == len(pairs) - 1:
            share = q2(net_cash - allocated)
        else:
            share = q2(net_cash * weight / total_weight)
        allocated += share
        category = classify_account(acc) or DEFAULT_CATEGORY
        result[category] = q2(result[category] + share)

    return result
