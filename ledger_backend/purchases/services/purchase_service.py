# purchases/services/purchase_service.py

"""
======================================================
PATH: purchases/services/purchase_service.py
======================================================
PURCHASE ORDER SERVICE

Approve a purchase order atomically (perpetual inventory):

Canonical flow:
1) Lock order
2) Validate status + items
3) Resolve Inventory + Accounts Payable (ConfigurationError, nothing written)
4) Post ledger: Inventory Dr / Accounts Payable Cr (order total)
5) Stock IN per line at the net purchase unit cost (reference_module=purchase)
6) Mark order approved

Cancellation reverses both sides (void or reversing entry, stock OUT with
reference_module=purchase_cancel). If part of the received stock has already
been sold, the stock OUT fails with InsufficientStockError and the whole
cancellation rolls back.
"""

from __future__ import annotations

import logging

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
    post_purchase_approval_to_ledger,
    post_purchase_payment_to_ledger,
    resolve_purchase_accounts,
)
from products.models import Product, StockMovement
from products.services.stock_ledger import add_stock, ensure_stock_available, reduce_stock
from purchases.models import Purchase, PurchaseItem, PurchasePayment

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    Purchase.STATUS_DRAFT: {Purchase.STATUS_APPROVED, Purchase.STATUS_CANCELLED},
    Purchase.STATUS_APPROVED: {Purchase.STATUS_RECEIVED, Purchase.STATUS_CANCELLED},
    Purchase.STATUS_RECEIVED: {Purchase.STATUS_CANCELLED},
}

# Statuses whose ledger + stock effects are live
POSTED_STATUSES = {Purchase.STATUS_APPROVED, Purchase.STATUS_RECEIVED}

EDITABLE_FIELDS = (
    "supplier_name",
    "supplier_address",
    "supplier_phone",
    "order_date",
    "due_date",
    "tax_rate",
    "notes",
)


def validate_transition(*, purchase: Purchase, target_status: str):
    if target_status not in ALLOWED_TRANSITIONS.get(purchase.status, set()):
        raise InvalidStateError(
            f"Purchase {purchase.order_number} cannot transition from "
            f"'{purchase.status}' to '{target_status}'"
        )


def _lock_purchase(purchase) -> Purchase:
    pk = getattr(purchase, "pk", purchase)
    try:
        return Purchase.objects.select_for_update().get(pk=pk)
    except Purchase.DoesNotExist:
        raise NotFoundError(f"Purchase {pk} not found")


def get_purchase(purchase_id) -> Purchase:
    try:
        return Purchase.objects.prefetch_related("items", "payments").get(pk=purchase_id)
    except (Purchase.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"Purchase {purchase_id} not found")


def _prepare_items(items):
    if not items:
        raise ValidationError("A purchase needs at least one item")

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
        unit_price = to_money(product.cost_price if unit_price in (None, "") else unit_price, field_name="unit_price")
        amounts = line_amounts(
            quantity=raw.get("quantity"),
            unit_price=unit_price,
            discount_percent=raw.get("discount_percent"),
            discount_amount=raw.get("discount_amount"),
        )
        prepared.append((product, amounts.quantity, unit_price, amounts))
    return prepared


def _write_items(purchase: Purchase, prepared) -> None:
    for line_no, (product, quantity, unit_price, amounts) in enumerate(prepared, start=1):
        PurchaseItem.objects.create(
            purchase=purchase,
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


def _apply_totals(purchase: Purchase, prepared) -> None:
    totals = document_totals([amounts for *_, amounts in prepared], tax_rate=purchase.tax_rate)
    for field, value in totals.items():
        setattr(purchase, field, value)
    purchase.remaining_balance = q2(purchase.total - to_money(purchase.paid_amount))
    purchase.payment_status = payment_status_for(paid=purchase.paid_amount, total=purchase.total)


# ============================================================
# DRAFTS
# ============================================================


@transaction.atomic
def create_purchase(
    *,
    supplier_name: str,
    items,
    order_date=None,
    due_date=None,
    tax_rate=None,
    notes: str = "",
    supplier_address: str = "",
    supplier_phone: str = "",
    user=None,
) -> Purchase:
    order_date = order_date or timezone.localdate()
    prepared = _prepare_items(items)

    purchase = Purchase(
        order_number=generate_number(
            getattr(settings, "PURCHASE_ORDER_PREFIX", "PO"),
            on_date=order_date,
            model=Purchase,
            field="order_number",
        ),
        supplier_name=supplier_name or "",
        supplier_address=supplier_address or "",
        supplier_phone=supplier_phone or "",
        order_date=order_date,
        due_date=due_date,
        tax_rate=to_money(tax_rate, field_name="tax_rate"),
        notes=notes or "",
        created_by=user,
    )
    _apply_totals(purchase, prepared)
    try:
        purchase.save()
    except DjangoValidationError as exc:
        raise ValidationError("; ".join(exc.messages)) from exc
    _write_items(purchase, prepared)

    logger.info(
        "Purchase created",
        extra={"purchase_id": str(purchase.pk), "order_number": purchase.order_number, "total": str(purchase.total)},
    )
    return purchase


@transaction.atomic
def update_purchase(purchase, *, items=None, **changes) -> Purchase:
    purchase = _lock_purchase(purchase)
    if not purchase.is_draft:
        raise InvalidStateError(
            f"Only draft purchases can be updated ({purchase.order_number} is {purchase.status})"
        )

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown purchase fields: {', '.join(sorted(unknown))}")

    for field, value in changes.items():
        if field == "tax_rate":
            value = to_money(value, field_name="tax_rate")
        setattr(purchase, field, value)

    if items is not None:
        prepared = _prepare_items(items)
        purchase.items.all().delete()
        _write_items(purchase, prepared)
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
            for item in purchase.items.select_related("product")
        ]

    _apply_totals(purchase, prepared)
    purchase.save()
    return purchase


@transaction.atomic
def delete_purchase(purchase) -> None:
    purchase = _lock_purchase(purchase)
    if not purchase.is_draft:
        raise InvalidStateError(
            f"Only draft purchases can be deleted ({purchase.order_number} is {purchase.status})"
        )
    purchase.items.all().delete()
    purchase.delete()


# ============================================================
# LIFECYCLE
# ============================================================


@transaction.atomic
def approve_purchase(purchase, *, user=None) -> Purchase:
    purchase = _lock_purchase(purchase)
    if purchase.status != Purchase.STATUS_DRAFT:
        raise InvalidStateError(
            f"Only draft purchases can be approved ({purchase.order_number} is {purchase.status})"
        )
    validate_transition(purchase=purchase, target_status=Purchase.STATUS_APPROVED)

    items = list(purchase.items.order_by("line_no"))
    if not items:
        raise ValidationError(f"Purchase {purchase.order_number} has no items")

    accounts = resolve_purchase_accounts()
    entry = post_purchase_approval_to_ledger(purchase=purchase, accounts=accounts, created_by=user)

    for item in sorted(items, key=lambda i: str(i.product_id)):
        add_stock(
            item.product_id,
            item.quantity,
            unit_cost=item.unit_cost,
            reference_module=StockMovement.ReferenceModule.PURCHASE,
            reference_id=purchase.pk,
            reference_number=purchase.order_number,
            user=user,
        )

    purchase.journal_entry = entry
    purchase.status = Purchase.STATUS_APPROVED
    purchase.approved_by = user
    purchase.approved_at = timezone.now()
    purchase.save()

    logger.info(
        "Purchase approved",
        extra={
            "purchase_id": str(purchase.pk),
            "order_number": purchase.order_number,
            "journal_number": entry.number,
            "total": str(purchase.total),
        },
    )
    return purchase


@transaction.atomic
def receive_purchase(purchase, *, user=None) -> Purchase:
    purchase = _lock_purchase(purchase)
    if purchase.status != Purchase.STATUS_APPROVED:
        raise InvalidStateError(f"Purchase {purchase.order_number} must be approved first")

    validate_transition(purchase=purchase, target_status=Purchase.STATUS_RECEIVED)
    purchase.status = Purchase.STATUS_RECEIVED
    purchase.received_by = user
    purchase.received_at = timezone.now()
    purchase.save()

    logger.info(
        "Purchase received",
        extra={"purchase_id": str(purchase.pk), "order_number": purchase.order_number},
    )
    return purchase


@transaction.atomic
def cancel_purchase(purchase, *, reason: str = "", user=None) -> Purchase:
    purchase = _lock_purchase(purchase)
    if purchase.status == Purchase.STATUS_CANCELLED:
        raise InvalidStateError(f"Purchase {purchase.order_number} is already cancelled")
    if purchase.payment_status == PAYMENT_PAID or to_money(purchase.paid_amount) > ZERO:
        raise InvalidStateError(f"Cannot cancel purchase {purchase.order_number} with recorded payments")

    validate_transition(purchase=purchase, target_status=Purchase.STATUS_CANCELLED)
    reason = (reason or "").strip()

    if purchase.status in POSTED_STATUSES:
        if not purchase.journal_entry_id:
            raise PartialFailureError(
                f"Purchase {purchase.order_number} is {purchase.status} but has no journal entry",
                purchase_id=str(purchase.pk),
            )

        items = list(purchase.items.order_by("line_no"))
        ensure_stock_available([(item.product_id, item.quantity) for item in items])

        cancel_document_posting(
            purchase.journal_entry,
            reason=reason or f"Cancellation of {purchase.order_number}",
            created_by=user,
        )

        for item in sorted(items, key=lambda i: str(i.product_id)):
            reduce_stock(
                item.product_id,
                item.quantity,
                unit_cost=item.unit_cost,
                reference_module=StockMovement.ReferenceModule.PURCHASE_CANCEL,
                reference_id=purchase.pk,
                reference_number=purchase.order_number,
                note=reason,
                user=user,
            )

    purchase.status = Purchase.STATUS_CANCELLED
    purchase.cancelled_at = timezone.now()
    purchase.cancelled_by = user
    purchase.cancellation_reason = reason[:255]
    purchase.save()

    logger.info(
        "Purchase cancelled",
        extra={"purchase_id": str(purchase.pk), "order_number": purchase.order_number, "reason": reason},
    )
    return purchase


# ============================================================
# PAYMENTS
# ============================================================


@transaction.atomic
def record_purchase_payment(
    purchase, *, amount, method: str, payment_date=None, note: str = "", user=None
) -> PurchasePayment:
    purchase = _lock_purchase(purchase)
    if purchase.status not in POSTED_STATUSES:
        raise InvalidStateError(
            f"Payments can only be recorded on approved or received purchases "
            f"({purchase.order_number} is {purchase.status})"
        )

    amount = to_money(amount)
    if amount <= ZERO:
        raise ValidationError("Payment amount must be greater than zero")

    remaining = q2(to_money(purchase.total) - to_money(purchase.paid_amount))
    if amount > remaining:
        raise ValidationError(
            f"Payment {amount} exceeds remaining balance {remaining} on {purchase.order_number}"
        )

    payment_date = payment_date or timezone.localdate()
    entry = post_purchase_payment_to_ledger(
        purchase=purchase,
        amount=amount,
        method=method,
        payment_date=payment_date,
        note=note,
        created_by=user,
    )

    payment = PurchasePayment.objects.create(
        purchase=purchase,
        payment_date=payment_date,
        amount=amount,
        method=method,
        note=note or "",
        journal_entry=entry,
        created_by=user,
    )

    purchase.paid_amount = q2(to_money(purchase.paid_amount) + amount)
    purchase.remaining_balance = q2(to_money(purchase.total) - purchase.paid_amount)
    purchase.payment_status = payment_status_for(paid=purchase.paid_amount, total=purchase.total)
    purchase.save()

    logger.info(
        "Purchase payment recorded",
        extra={
            "purchase_id": str(purchase.pk),
            "order_number": purchase.order_number,
            "amount": str(amount),
            "method": method,
            "journal_number": entry.number,
        },
    )
    return payment


# ============================================================
# REPORTS
# ============================================================


def get_outstanding_purchases():
    return (
        Purchase.objects.filter(
            status__in=POSTED_STATUSES,
            payment_status__in=[PAYMENT_UNPAID, PAYMENT_PARTIAL],
        )
        .order_by("due_date", "order_date", "order_number")
    )


def get_payables_aging(*, as_of=None) -> dict:
    return aging.build_aging(
        (
            {
                "id": str(purchase.pk),
                "number": purchase.order_number,
                "party": purchase.supplier_name,
                "document_date": purchase.order_date,
                "due_date": purchase.due_date,
                "total": purchase.total,
                "remaining": purchase.remaining_balance,
            }
            for purchase in get_outstanding_purchases()
        ),
        as_of=as_of,
    )
