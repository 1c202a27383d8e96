# PATH: accounting/services/account_resolver.py

"""
ACCOUNT RESOLVER (AUTHORITATIVE)

This module answers ONE question:
"Which account should automatic postings use for this purpose?"

Accounts are resolved by their `role` tag, never by code patterns, so a
chart whose codes do not follow the default numbering still posts correctly.

Design goals:
- deterministic (lowest active code wins when a role is shared)
- hard-fail on missing setup (ConfigurationError) so we never post to the
  wrong account or emit a partial entry
"""

from __future__ import annotations

import logging

from accounting.models.account import Account
from accounting.services.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def get_account_for_role(role: str) -> Account:
    account = (
        Account.objects.filter(role=role, is_active=True).order_by("code").first()
    )
    if account is None:
        label = dict(Account.Role.choices).get(role, role)
        logger.error("Required account missing", extra={"role": role})
        raise ConfigurationError(
            f"No active '{label}' account is configured (role={role}). "
            "Set up the chart of accounts before posting."
        )
    return account


def get_cash_account() -> Account:
    return get_account_for_role(Account.Role.CASH)


def get_bank_account() -> Account:
    return get_account_for_role(Account.Role.BANK)


def get_accounts_receivable_account() -> Account:
    return get_account_for_role(Account.Role.RECEIVABLE)


def get_inventory_account() -> Account:
    return get_account_for_role(Account.Role.INVENTORY)


def get_cogs_account() -> Account:
    return get_account_for_role(Account.Role.COGS)


def get_accounts_payable_account() -> Account:
    return get_account_for_role(Account.Role.PAYABLE_CURRENT)


def get_sales_revenue_account() -> Account:
    return get_account_for_role(Account.Role.NET_SALES)


def get_tax_payable_account() -> Account:
    return get_account_for_role(Account.Role.TAX_PAYABLE)


def get_settlement_account(method: str) -> Account:
    """Cash or bank account for a payment method ("cash" / "bank")."""
    method = (method or "").strip().lower()
    if method == "bank":
        return get_bank_account()
    if method == "cash":
        return get_cash_account()
    raise ConfigurationError(f"Unsupported payment method: {method!r}")
