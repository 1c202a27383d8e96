# accounting/services/documents.py

"""
Commercial document arithmetic shared by sales invoices and purchase orders.

Line:    gross = quantity × unit_price
         discount = gross × discount_percent / 100   (when a percent is given)
                  | discount_amount                   (otherwise)
         subtotal = gross − discount
Header:  subtotal = Σ gross
         discount_total = Σ line discounts
         subtotal_after_discount = subtotal − discount_total
         tax_amount = subtotal_after_discount × tax_rate / 100
         total = subtotal_after_discount + tax_amount
Payment: remaining = total − paid; status unpaid | partial | paid
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from accounting.services.exceptions import ValidationError
from accounting.services.money import ZERO, q2, to_money, to_quantity

PAYMENT_UNPAID = "unpaid"
PAYMENT_PARTIAL = "partial"
PAYMENT_PAID = "paid"

PAYMENT_STATUSES = [
    (PAYMENT_UNPAID, "Unpaid"),
    (PAYMENT_PARTIAL, "Partially paid"),
    (PAYMENT_PAID, "Paid"),
]

METHOD_CASH = "cash"
METHOD_BANK = "bank"

PAYMENT_METHODS = [
    (METHOD_CASH, "Cash"),
    (METHOD_BANK, "Bank"),
]

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineAmounts:
    quantity: int
    gross: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    subtotal: Decimal


def line_amounts(*, quantity, unit_price, discount_percent=None, discount_amount=None) -> LineAmounts:
    qty = to_quantity(quantity)

    price = to_money(unit_price, field_name="unit_price")
    if price < ZERO:
        raise ValidationError("unit_price cannot be negative")

    pct = to_money(discount_percent, field_name="discount_percent")
    if pct < ZERO or pct > HUNDRED:
        raise ValidationError("discount_percent must be between 0 and 100")

    gross = q2(price * qty)
    if pct > ZERO:
        discount = q2(gross * pct / HUNDRED)
    else:
        discount = to_money(discount_amount, field_name="discount_amount")

    if discount < ZERO or discount > gross:
        raise ValidationError("discount_amount must be between 0 and the line amount")

    return LineAmounts(
        quantity=qty,
        gross=gross,
        discount_percent=pct,
        discount_amount=discount,
        subtotal=q2(gross - discount),
    )


def document_totals(lines: list[LineAmounts], *, tax_rate) -> dict:
    rate = to_money(tax_rate, field_name="tax_rate")
    if rate < ZERO:
        raise ValidationError("tax_rate cannot be negative")

    subtotal = q2(sum((line.gross for line in lines), ZERO))
    discount_total = q2(sum((line.discount_amount for line in lines), ZERO))
    after_discount = q2(subtotal - discount_total)
    tax_amount = q2(after_discount * rate / HUNDRED)

    return {
        "subtotal": subtotal,
        "discount_total": discount_total,
        "subtotal_after_discount": after_discount,
        "tax_rate": rate,
        "tax_amount": tax_amount,
        "total": q2(after_discount + tax_amount),
    }


def payment_status_for(*, paid, total) -> str:
    paid = to_money(paid)
    if paid <= ZERO:
        return PAYMENT_UNPAID
    if paid >= to_money(total):
        return PAYMENT_PAID
    return PAYMENT_PARTIAL
