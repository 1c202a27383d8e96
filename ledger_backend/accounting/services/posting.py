# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING ADAPTER (INVENTORY-LEDGER BRIDGE, LEDGER SIDE)

Build postings for business events and call create_journal_entry (the engine).

This module should remain a thin adapter:
- It DOES NOT do workflows (sale/purchase services orchestrate stock + ledger).
- It DOES map business events -> balanced accounting postings.
- It ALWAYS calls the journal engine, posting immediately.

Events:
- sale approval:      Dr Receivable (total)  / Cr Sales (net) [+ Cr Tax Payable (tax)]
                      Dr COGS (Σ qty × cost) / Cr Inventory
- purchase approval:  Dr Inventory / Cr Accounts Payable (total)
- sale payment:       Dr Cash|Bank / Cr Receivable
- purchase payment:   Dr Accounts Payable / Cr Cash|Bank
- cancellation:       void the original entry, or post a reversing entry
                      (settings.LEDGER_CANCELLATION_MODE)

Every required account is resolved BEFORE the entry is written; a missing
account raises ConfigurationError and nothing is posted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings

from accounting.models.journal import JournalEntry
from accounting.services import account_resolver
from accounting.services.exceptions import ValidationError
from accounting.services.journal_entry_service import (
    create_journal_entry,
    reverse_journal_entry,
    void_journal_entry,
)
from accounting.services.money import ZERO, q2, to_money

CANCEL_BY_VOID = "void"
CANCEL_BY_REVERSAL = "reverse"
CANCELLATION_MODES = (CANCEL_BY_VOID, CANCEL_BY_REVERSAL)


def _merge_postings_by_account(postings: list[dict]) -> list[dict]:
    """
    Combine postings with the same account (keeps journal tidy).
    """
    merged: dict[Any, dict[str, Any]] = {}
    for p in postings:
        acct = p["account"]
        if acct.pk not in merged:
            merged[acct.pk] = {"account": acct, "debit": ZERO, "credit": ZERO, "memo": p.get("memo", "")}
        merged[acct.pk]["debit"] = q2(merged[acct.pk]["debit"] + to_money(p.get("debit")))
        merged[acct.pk]["credit"] = q2(merged[acct.pk]["credit"] + to_money(p.get("credit")))

    return [p for p in merged.values() if p["debit"] != ZERO or p["credit"] != ZERO]


# ============================================================
# SALES
# ============================================================


def resolve_sale_accounts(*, tax_amount=ZERO) -> dict:
    accounts = {
        "receivable": account_resolver.get_accounts_receivable_account(),
        "revenue": account_resolver.get_sales_revenue_account(),
        "cogs": account_resolver.get_cogs_account(),
        "inventory": account_resolver.get_inventory_account(),
    }
    if to_money(tax_amount) > ZERO:
        accounts["tax_payable"] = account_resolver.get_tax_payable_account()
    return accounts


def post_sale_approval_to_ledger(*, sale, cogs: Decimal, accounts: dict | None = None, created_by=None) -> JournalEntry:
    total = to_money(sale.total)
    net_revenue = to_money(sale.subtotal_after_discount)
    tax_amount = to_money(sale.tax_amount)
    cogs = to_money(cogs)

    if total <= ZERO:
        raise ValidationError(f"Sale {sale.invoice_number} has no amount to post")

    accounts = accounts or resolve_sale_accounts(tax_amount=tax_amount)

    postings = [
        {"account": accounts["receivable"], "debit": total, "memo": "Receivable"},
        {"account": accounts["revenue"], "credit": net_revenue, "memo": "Sales revenue"},
    ]
    if tax_amount > ZERO:
        postings.append({"account": accounts["tax_payable"], "credit": tax_amount, "memo": "Output tax"})
    if cogs > ZERO:
        postings.append({"account": accounts["cogs"], "debit": cogs, "memo": "Cost of goods sold"})
        postings.append({"account": accounts["inventory"], "credit": cogs, "memo": "Inventory relieved"})

    return create_journal_entry(
        description=f"Sales invoice {sale.invoice_number}",
        lines=postings,
        entry_date=sale.invoice_date,
        transaction_kind=JournalEntry.Kind.SALES,
        post=True,
        reference_type="sale",
        reference_id=str(sale.pk),
        reference_number=sale.invoice_number,
        created_by=created_by,
    )


def post_sale_payment_to_ledger(*, sale, amount, method: str, payment_date, note: str = "", created_by=None) -> JournalEntry:
    amount = to_money(amount)
    settlement = account_resolver.get_settlement_account(method)
    receivable = account_resolver.get_accounts_receivable_account()

    description = f"Payment received for {sale.invoice_number}"
    if note:
        description = f"{description} ({note})"

    return create_journal_entry(
        description=description,
        lines=[
            {"account": settlement, "debit": amount},
            {"account": receivable, "credit": amount},
        ],
        entry_date=payment_date,
        transaction_kind=JournalEntry.Kind.CASH_IN,
        post=True,
        reference_type="sale_payment",
        reference_id=str(sale.pk),
        reference_number=sale.invoice_number,
        created_by=created_by,
    )


# ============================================================
# PURCHASES
# ============================================================


def resolve_purchase_accounts() -> dict:
    return {
        "inventory": account_resolver.get_inventory_account(),
        "payable": account_resolver.get_accounts_payable_account(),
    }


def post_purchase_approval_to_ledger(*, purchase, accounts: dict | None = None, created_by=None) -> JournalEntry:
    total = to_money(purchase.total)
    if total <= ZERO:
        raise ValidationError(f"Purchase {purchase.order_number} has no amount to post")

    accounts = accounts or resolve_purchase_accounts()

    return create_journal_entry(
        description=f"Purchase order {purchase.order_number}",
        lines=[
            {"account": accounts["inventory"], "debit": total, "memo": "Inventory received"},
            {"account": accounts["payable"], "credit": total, "memo": "Accounts payable"},
        ],
        entry_date=purchase.order_date,
        transaction_kind=JournalEntry.Kind.PURCHASE,
        post=True,
        reference_type="purchase",
        reference_id=str(purchase.pk),
        reference_number=purchase.order_number,
        created_by=created_by,
    )


def post_purchase_payment_to_ledger(*, purchase, amount, method: str, payment_date, note: str = "", created_by=None) -> JournalEntry:
    amount = to_money(amount)
    settlement = account_resolver.get_settlement_account(method)
    payable = account_resolver.get_accounts_payable_account()

    description = f"Payment to supplier for {purchase.order_number}"
    if note:
        description = f"{description} ({note})"

    return create_journal_entry(
        description=description,
        lines=[
            {"account": payable, "debit": amount},
            {"account": settlement, "credit": amount},
        ],
        entry_date=payment_date,
        transaction_kind=JournalEntry.Kind.CASH_OUT,
        post=True,
        reference_type="purchase_payment",
        reference_id=str(purchase.pk),
        reference_number=purchase.order_number,
        created_by=created_by,
    )


# ============================================================
# CANCELLATION
# ============================================================


def cancellation_mode() -> str:
    mode = (getattr(settings, "LEDGER_CANCELLATION_MODE", CANCEL_BY_VOID) or CANCEL_BY_VOID).strip().lower()
    if mode not in CANCELLATION_MODES:
        raise ValidationError(f"Unknown cancellation mode: {mode!r}")
    return mode


def cancel_document_posting(entry: JournalEntry, *, reason: str, created_by=None) -> JournalEntry:
    """
    Remove the ledger effect of a document's posted entry.

    Returns the voided original (void mode) or the new reversing entry.
    """
    if cancellation_mode() == CANCEL_BY_REVERSAL:
        return reverse_journal_entry(
            entry.pk, reason=reason, created_by=created_by, document_cancellation=True
        )
    return void_journal_entry(entry.pk, reason=reason, document_cancellation=True)
