# sales/services/sale_service.py

"""
SALES DOMAIN SERVICE

SINGLE SOURCE OF TRUTH for:
- Sales invoice creation / draft edits (totals are always derived here)
- Approval: stock check -> journal (revenue + COGS) -> stock OUT
- Cancellation: void/reverse the journal -> stock back IN (sales_return)
- Payments: Cash/Bank Dr / Receivable Cr
- Outstanding + receivables aging

GUARANTEES:
- Every multi-step operation runs inside ONE transaction.atomic block:
  the journal and the stock ledger commit or roll back together
- Stock is validated for every line BEFORE anything is written
- Required accounts are resolved BEFORE anything is written
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from accounting.services import aging
from accounting.services.documents import (
    PAYMENT_PAID,
    PAYMENT_PARTIAL,
    PAYMENT_UNPAID,
    document_totals,
    line_amounts,
    payment_status_for,
)
from accounting.services.exceptions import (
    InvalidStateError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from accounting.services.money import ZERO, q2, to_money
from accounting.services.numbering import generate_number
from accounting.services.posting import (
    cancel_document_posting,
    post_sale_approval_to_ledger,
    post_sale_payment_to_ledger,
    resolve_sale_accounts,
)
from products.models import Product, StockMovement
from products.services.stock_ledger import add_stock, ensure_stock_available, reduce_stock
from sales.models import Sale, SaleItem, SalePayment
from sales.services.sale_lifecycle import validate_transition

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "customer_name",
    "customer_address",
    "customer_phone",
    "invoice_date",
    "due_date",
    "tax_rate",
    "notes",
)


def _lock_sale(sale) -> Sale:
    pk = getattr(sale, "pk", sale)
    try:
        return Sale.objects.select_for_update().get(pk=pk)
    except Sale.DoesNotExist:
        raise NotFoundError(f"Sale {pk} not found")


def get_sale(sale_id) -> Sale:
    try:
        return Sale.objects.prefetch_related("items", "payments").get(pk=sale_id)
    except (Sale.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Sale {sale_id} not found")


def _default_tax_rate() -> Decimal:
    return to_money(getattr(settings, "SALES_DEFAULT_TAX_RATE", 0), field_name="tax_rate")


def _prepare_items(items) -> list[tuple[Product, int, Decimal, object]]:
    if not items:
        raise ValidationError("A sale needs at least one item")

    prepared = []
    for raw in items:
        ref = raw.get("product") or raw.get("product_id")
        pk = getattr(ref, "pk", ref)
        try:
            product = Product.objects.filter(pk=pk).first() if pk else None
        except (DjangoValidationError, ValueError):
            product = None
        if product is None:
            raise ValidationError(f"Product not found: {pk}")
        if not product.is_active:
            raise ValidationError(f"Product is not active: {product.name}")

        unit_price = raw.get("unit_price")
        unit_price = to_money(product.sell_price if unit_price in (None, "") else unit_price, field_name="unit_price")
        amounts = line_amounts(
            quantity=raw.get("quantity"),
            unit_price=unit_price,
            discount_percent=raw.get("discount_percent"),
            discount_amount=raw.get("discount_amount"),
        )
        prepared.append((product, amounts.quantity, unit_price, amounts))
    return prepared


def _write_items(sale: Sale, prepared) -> None:
    for line_no, (product, quantity, unit_price, amounts) in enumerate(prepared, start=1):
        SaleItem.objects.create(
            sale=sale,
            product=product,
            product_sku=product.sku,
            product_name=product.name,
            unit=product.unit,
            quantity=quantity,
            unit_price=unit_price,
            discount_percent=amounts.discount_percent,
            discount_amount=amounts.discount_amount,
            subtotal=amounts.subtotal,
            line_no=line_no,
        )


def _apply_totals(sale: Sale, prepared) -> None:
    totals = document_totals([amounts for *_, amounts in prepared], tax_rate=sale.tax_rate)
    for field, value in totals.items():
        setattr(sale, field, value)
    sale.remaining_balance = q2(sale.total - to_money(sale.paid_amount))
    sale.payment_status = payment_status_for(paid=sale.paid_amount, total=sale.total)


# ============================================================
# DRAFTS
# ============================================================


@transaction.atomic
def create_sale(
    *,
    customer_name: str,
    items,
    invoice_date=None,
    due_date=None,
    tax_rate=None,
    notes: str = "",
    customer_address: str = "",
    customer_phone: str = "",
    user=None,
) -> Sale:
    invoice_date = invoice_date or timezone.localdate()
    prepared = _prepare_items(items)

    sale = Sale(
        invoice_number=generate_number(
            getattr(settings, "SALES_INVOICE_PREFIX", "INV"),
            on_date=invoice_date,
            model=Sale,
            field="invoice_number",
        ),
        customer_name=customer_name or "",
        customer_address=customer_address or "",
        customer_phone=customer_phone or "",
        invoice_date=invoice_date,
        due_date=due_date,
        tax_rate=_default_tax_rate() if tax_rate in (None, "") else to_money(tax_rate, field_name="tax_rate"),
        notes=notes or "",
        created_by=user,
    )
    _apply_totals(sale, prepared)
    try:
        sale.save()
    except DjangoValidationError as exc:
        raise ValidationError("; ".join(exc.messages)) from exc
    _write_items(sale, prepared)

    logger.info(
        "Sale created",
        extra={"sale_id": str(sale.pk), "invoice_number": sale.invoice_number, "total": str(sale.total)},
    )
    return sale


@transaction.atomic
def update_sale(sale, *, items=None, **changes) -> Sale:
    sale = _lock_sale(sale)
    if not sale.is_draft:
        raise InvalidStateError(f"Only draft sales can be updated ({sale.invoice_number} is {sale.status})")

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown sale fields: {', '.join(sorted(unknown))}")

    for field, value in changes.items():
        if field == "tax_rate":
            value = to_money(value, field_name="tax_rate")
        setattr(sale, field, value)

    if items is not None:
        prepared = _prepare_items(items)
        sale.items.all().delete()
        _write_items(sale, prepared)
    else:
        prepared = [
            (
                item.product,
                item.quantity,
                item.unit_price,
                line_amounts(
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    discount_percent=item.discount_percent,
                    discount_amount=item.discount_amount,
                ),
            )
            for item in sale.items.select_related("product")
        ]

    _apply_totals(sale, prepared)
    sale.save()
    return sale


@transaction.atomic
def delete_sale(sale) -> None:
    sale = _lock_sale(sale)
    if not sale.is_draft:
        raise InvalidStateError(f"Only draft sales can be deleted ({sale.invoice_number} is {sale.status})")
    sale.items.all().delete()
    sale.delete()


# ============================================================
# LIFECYCLE
# ============================================================


@transaction.atomic
def approve_sale(sale, *, user=None) -> Sale:
    """
    draft -> approved

    Order inside the transaction:
    1) lock the sale and its products (pk order)
    2) every line's stock is checked (InsufficientStockError, nothing written)
    3) accounts resolved (ConfigurationError, nothing written)
    4) one posted entry: Receivable/Sales(/Tax) + COGS/Inventory
    5) stock OUT per line (reference_module=sales)
    """
    sale = _lock_sale(sale)
    if sale.status != Sale.STATUS_DRAFT:
        raise InvalidStateError(f"Only draft sales can be approved ({sale.invoice_number} is {sale.status})")
    validate_transition(sale=sale, target_status=Sale.STATUS_APPROVED)

    items = list(sale.items.order_by("line_no"))
    if not items:
        raise ValidationError(f"Sale {sale.invoice_number} has no items")

    product_ids = {item.product_id for item in items}
    products = {
        p.pk: p
        for p in Product.objects.select_for_update().filter(pk__in=product_ids).order_by("pk")
    }

    ensure_stock_available([(products[item.product_id], item.quantity) for item in items])

    accounts = resolve_sale_accounts(tax_amount=sale.tax_amount)

    cogs = ZERO
    for item in items:
        product = products[item.product_id]
        item.unit_cost = q2(to_money(product.cost_price))
        item.cost_amount = q2(item.unit_cost * item.quantity)
        cogs += item.cost_amount
    cogs = q2(cogs)

    entry = post_sale_approval_to_ledger(sale=sale, cogs=cogs, accounts=accounts, created_by=user)

    for item in items:
        item.save(update_fields=["unit_cost", "cost_amount"])
        reduce_stock(
            products[item.product_id],
            item.quantity,
            unit_cost=item.unit_cost,
            reference_module=StockMovement.ReferenceModule.SALES,
            reference_id=sale.pk,
            reference_number=sale.invoice_number,
            user=user,
        )

    sale.cogs = cogs
    sale.gross_profit = q2(to_money(sale.subtotal_after_discount) - cogs)
    sale.journal_entry = entry
    sale.status = Sale.STATUS_APPROVED
    sale.approved_by = user
    sale.approved_at = timezone.now()
    sale.save()

    logger.info(
        "Sale approved",
        extra={
            "sale_id": str(sale.pk),
            "invoice_number": sale.invoice_number,
            "journal_number": entry.number,
            "total": str(sale.total),
            "cogs": str(cogs),
        },
    )
    return sale


@transaction.atomic
def complete_sale(sale, *, user=None) -> Sale:
    sale = _lock_sale(sale)
    if sale.status != Sale.STATUS_APPROVED:
        raise InvalidStateError(f"Sale {sale.invoice_number} must be approved first")
    if sale.payment_status != PAYMENT_PAID:
        raise InvalidStateError(f"Sale {sale.invoice_number} must be fully paid to complete")

    validate_transition(sale=sale, target_status=Sale.STATUS_COMPLETED)
    sale.status = Sale.STATUS_COMPLETED
    sale.completed_at = timezone.now()
    sale.save()

    logger.info("Sale completed", extra={"sale_id": str(sale.pk), "invoice_number": sale.invoice_number})
    return sale


@transaction.atomic
def cancel_sale(sale, *, reason: str = "", user=None) -> Sale:
    """
    draft|approved -> cancelled

    Approved sales: the journal entry is voided (or reversed, per
    LEDGER_CANCELLATION_MODE) and every line's stock comes back IN.
    """
    sale = _lock_sale(sale)
    if sale.status == Sale.STATUS_CANCELLED:
        raise InvalidStateError(f"Sale {sale.invoice_number} is already cancelled")
    if sale.payment_status == PAYMENT_PAID or to_money(sale.paid_amount) > ZERO:
        raise InvalidStateError(f"Cannot cancel sale {sale.invoice_number} with recorded payments")

    validate_transition(sale=sale, target_status=Sale.STATUS_CANCELLED)
    reason = (reason or "").strip()

    if sale.status == Sale.STATUS_APPROVED:
        if not sale.journal_entry_id:
            raise PartialFailureError(
                f"Sale {sale.invoice_number} is approved but has no journal entry",
                sale_id=str(sale.pk),
            )

        cancel_document_posting(
            sale.journal_entry,
            reason=reason or f"Cancellation of {sale.invoice_number}",
            created_by=user,
        )

        items = list(sale.items.order_by("line_no"))
        for item in sorted(items, key=lambda i: str(i.product_id)):
            add_stock(
                item.product_id,
                item.quantity,
                unit_cost=item.unit_cost,
                reference_module=StockMovement.ReferenceModule.SALES_RETURN,
                reference_id=sale.pk,
                reference_number=sale.invoice_number,
                note=reason,
                user=user,
            )

    sale.status = Sale.STATUS_CANCELLED
    sale.cancelled_at = timezone.now()
    sale.cancelled_by = user
    sale.cancellation_reason = reason[:255]
    sale.save()

    logger.info(
        "Sale cancelled",
        extra={"sale_id": str(sale.pk), "invoice_number": sale.invoice_number, "reason": reason},
    )
    return sale


# ============================================================
# PAYMENTS
# ============================================================


@transaction.atomic
def record_sale_payment(sale, *, amount, method: str, payment_date=None, note: str = "", user=None) -> SalePayment:
    sale = _lock_sale(sale)
    if sale.status != Sale.STATUS_APPROVED:
        raise InvalidStateError(f"Payments can only be recorded on approved sales ({sale.invoice_number} is {sale.status})")

    amount = to_money(amount)
    if amount <= ZERO:
        raise ValidationError("Payment amount must be greater than zero")

    remaining = q2(to_money(sale.total) - to_money(sale.paid_amount))
    if amount > remaining:
        raise ValidationError(
            f"Payment {amount} exceeds remaining balance {remaining} on {sale.invoice_number}"
        )

    payment_date = payment_date or timezone.localdate()
    entry = post_sale_payment_to_ledger(
        sale=sale,
        amount=amount,
        method=method,
        payment_date=payment_date,
        note=note,
        created_by=user,
    )

    payment = SalePayment.objects.create(
        sale=sale,
        payment_date=payment_date,
        amount=amount,
        method=method,
        note=note or "",
        journal_entry=entry,
        created_by=user,
    )

    sale.paid_amount = q2(to_money(sale.paid_amount) + amount)
    sale.remaining_balance = q2(to_money(sale.total) - sale.paid_amount)
    sale.payment_status = payment_status_for(paid=sale.paid_amount, total=sale.total)
    sale.save()

    logger.info(
        "Sale payment recorded",
        extra={
            "sale_id": str(sale.pk),
            "invoice_number": sale.invoice_number,
            "amount": str(amount),
            "method": method,
            "journal_number": entry.number,
        },
    )
    return payment


# ============================================================
# REPORTS
# ============================================================


def get_outstanding_sales():
    return (
        Sale.objects.filter(
            status=Sale.STATUS_APPROVED,
            payment_status__in=[PAYMENT_UNPAID, PAYMENT_PARTIAL],
        )
        .order_by("due_date", "invoice_date", "invoice_number")
    )


def get_receivables_aging(*, as_of=None) -> dict:
    return aging.build_aging(
        (
            {
                "id": str(sale.pk),
                "number": sale.invoice_number,
                "party": sale.customer_name,
                "document_date": sale.invoice_date,
                "due_date": sale.due_date,
                "total": sale.total,
                "remaining": sale.remaining_balance,
            }
            for sale in get_outstanding_sales()
        ),
        as_of=as_of,
    )
