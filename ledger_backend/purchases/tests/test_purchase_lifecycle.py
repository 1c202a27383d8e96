# purchases/tests/test_purchase_lifecycle.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.services.balance_service import get_account_balance
from accounting.services import journal_entry_service as journals
from accounting.services.exceptions import InsufficientStockError, InvalidStateError, ValidationError
from products.models import Product, StockMovement
from products.services.stock_ledger import reduce_stock
from purchases.models import Purchase, PurchasePayment
from purchases.services import purchase_service


def _balance(code):
    return get_account_balance(Account.objects.get(code=code))


class PurchaseLifecycleTests(TestCase):
    """
    Purchase orders: draft -> approved -> received, or cancelled.

    GUARANTEES:
    - Approval posts Inventory Dr / Payable Cr and moves stock in at net unit cost
    - Cancellation undoes both the posting and the stock
    - Cancellation is refused when the received stock is already gone
    - The posted entry can only be unwound by cancelling the purchase
    - Supplier payments post Payable Dr / Cash or Bank Cr
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        self.product = Product.objects.create(
            sku="CPW-2MM", name="Copper Wire 2mm", cost_price="40.00", sell_price="70.00"
        )

    def _purchase(self, quantity=10, **kwargs):
        kwargs.setdefault("supplier_name", "Allied Supplies Ltd")
        kwargs.setdefault("order_date", date(2025, 2, 3))
        kwargs.setdefault("due_date", date(2025, 3, 5))
        return purchase_service.create_purchase(
            items=[{"product": self.product, "quantity": quantity, "unit_price": "40.00"}],
            **kwargs,
        )

    # ------------------------------------------------------------
    # drafts
    # ------------------------------------------------------------

    def test_create_numbers_and_totals(self):
        purchase = self._purchase()

        self.assertEqual(purchase.order_number, "PO-202502-0001")
        self.assertEqual(purchase.status, Purchase.STATUS_DRAFT)
        self.assertEqual(purchase.total, Decimal("400.00"))
        self.assertEqual(purchase.remaining_balance, Decimal("400.00"))
        self.assertEqual(self._purchase().order_number, "PO-202502-0002")

    def test_unit_price_defaults_to_product_cost(self):
        purchase = purchase_service.create_purchase(
            supplier_name="Allied Supplies Ltd", items=[{"product": self.product, "quantity": 2}]
        )
        self.assertEqual(purchase.items.get().unit_price, Decimal("40.00"))

    def test_create_requires_items(self):
        with self.assertRaises(ValidationError):
            purchase_service.create_purchase(supplier_name="Allied Supplies Ltd", items=[])

    def test_fractional_quantity_is_rejected(self):
        for quantity in (2.5, "2.5", Decimal("0.5")):
            with self.subTest(quantity=quantity), self.assertRaises(ValidationError):
                self._purchase(quantity=quantity)
        self.assertEqual(Purchase.objects.count(), 0)

    def test_update_draft(self):
        purchase = self._purchase()

        purchase = purchase_service.update_purchase(
            purchase,
            items=[{"product": self.product, "quantity": 5, "unit_price": "38.00"}],
            notes="Renegotiated",
        )

        self.assertEqual(purchase.total, Decimal("190.00"))
        self.assertEqual(purchase.notes, "Renegotiated")

    def test_update_rejects_unknown_fields(self):
        with self.assertRaises(ValidationError):
            purchase_service.update_purchase(self._purchase(), total="1.00")

    def test_only_drafts_are_editable(self):
        purchase = purchase_service.approve_purchase(self._purchase())

        with self.assertRaises(InvalidStateError):
            purchase_service.update_purchase(purchase, notes="late")
        with self.assertRaises(InvalidStateError):
            purchase_service.delete_purchase(purchase)

    def test_delete_draft(self):
        purchase = self._purchase()
        purchase_service.delete_purchase(purchase)
        self.assertFalse(Purchase.objects.filter(pk=purchase.pk).exists())

    # ------------------------------------------------------------
    # approval / receiving
    # ------------------------------------------------------------

    def test_approval_posts_and_stocks_in(self):
        purchase = purchase_service.approve_purchase(self._purchase())

        self.assertEqual(purchase.status, Purchase.STATUS_APPROVED)
        entry = purchase.journal_entry
        self.assertEqual(entry.status, JournalEntry.Status.POSTED)
        self.assertEqual(entry.transaction_kind, JournalEntry.Kind.PURCHASE)
        self.assertEqual(entry.entry_date, date(2025, 2, 3))
        self.assertEqual(entry.reference_number, purchase.order_number)

        self.assertEqual(_balance("1-1105"), Decimal("400.00"))
        self.assertEqual(_balance("2-1101"), Decimal("400.00"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 10)

        movement = StockMovement.objects.get(product=self.product)
        self.assertEqual(movement.reference_module, StockMovement.ReferenceModule.PURCHASE)
        self.assertEqual(movement.unit_cost, Decimal("40.00"))
        self.assertEqual(movement.reference_number, purchase.order_number)

    def test_discounted_lines_stock_in_at_net_cost(self):
        purchase = purchase_service.create_purchase(
            supplier_name="Allied Supplies Ltd",
            items=[{"product": self.product, "quantity": 4, "unit_price": "50.00", "discount_percent": "10"}],
        )
        purchase_service.approve_purchase(purchase)

        movement = StockMovement.objects.get(product=self.product)
        self.assertEqual(movement.unit_cost, Decimal("45.00"))

    def test_receive_requires_approval(self):
        purchase = self._purchase()

        with self.assertRaises(InvalidStateError):
            purchase_service.receive_purchase(purchase)

        purchase_service.approve_purchase(purchase)
        purchase = purchase_service.receive_purchase(purchase)

        self.assertEqual(purchase.status, Purchase.STATUS_RECEIVED)
        self.assertIsNotNone(purchase.received_at)

    def test_approve_twice_is_rejected(self):
        purchase = purchase_service.approve_purchase(self._purchase())

        with self.assertRaises(InvalidStateError):
            purchase_service.approve_purchase(purchase)

    # ------------------------------------------------------------
    # cancellation
    # ------------------------------------------------------------

    def test_cancel_approved_purchase(self):
        purchase = purchase_service.approve_purchase(self._purchase())

        purchase = purchase_service.cancel_purchase(purchase, reason="Wrong supplier")

        self.assertEqual(purchase.status, Purchase.STATUS_CANCELLED)
        self.assertEqual(purchase.cancellation_reason, "Wrong supplier")
        purchase.journal_entry.refresh_from_db()
        self.assertEqual(purchase.journal_entry.status, JournalEntry.Status.VOID)

        self.assertEqual(_balance("1-1105"), Decimal("0.00"))
        self.assertEqual(_balance("2-1101"), Decimal("0.00"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 0)
        self.assertTrue(
            StockMovement.objects.filter(
                product=self.product,
                reference_module=StockMovement.ReferenceModule.PURCHASE_CANCEL,
                quantity=-10,
            ).exists()
        )

    def test_cancel_received_purchase(self):
        purchase = purchase_service.receive_purchase(purchase_service.approve_purchase(self._purchase()))

        purchase = purchase_service.cancel_purchase(purchase)

        self.assertEqual(purchase.status, Purchase.STATUS_CANCELLED)

    def test_cancel_refused_when_stock_consumed(self):
        purchase = purchase_service.approve_purchase(self._purchase())
        reduce_stock(self.product, 7)

        with self.assertRaises(InsufficientStockError) as ctx:
            purchase_service.cancel_purchase(purchase)

        self.assertEqual(ctx.exception.details["shortfall"], 7)
        purchase.refresh_from_db()
        self.assertEqual(purchase.status, Purchase.STATUS_APPROVED)
        self.assertEqual(JournalEntry.objects.get(pk=purchase.journal_entry_id).status, JournalEntry.Status.POSTED)
        self.assertEqual(_balance("1-1105"), Decimal("400.00"))

    def test_posting_cannot_be_voided_from_the_journal(self):
        purchase = purchase_service.approve_purchase(self._purchase())

        with self.assertRaises(InvalidStateError):
            journals.void_journal_entry(purchase.journal_entry_id, reason="Stray")
        with self.assertRaises(InvalidStateError):
            journals.reverse_journal_entry(purchase.journal_entry_id)

        self.assertEqual(JournalEntry.objects.get(pk=purchase.journal_entry_id).status, JournalEntry.Status.POSTED)
        self.assertEqual(_balance("1-1105"), Decimal("400.00"))
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 10)

    def test_cancel_draft_has_no_side_effects(self):
        purchase = purchase_service.cancel_purchase(self._purchase())

        self.assertEqual(purchase.status, Purchase.STATUS_CANCELLED)
        self.assertEqual(JournalEntry.objects.count(), 0)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_cancelled_is_terminal(self):
        purchase = purchase_service.cancel_purchase(self._purchase())

        with self.assertRaises(InvalidStateError):
            purchase_service.cancel_purchase(purchase)
        with self.assertRaises(InvalidStateError):
            purchase_service.approve_purchase(purchase)


class PurchasePaymentTests(TestCase):
    """
    Supplier payments against approved or received purchases.

    GUARANTEES:
    - Payable Dr / Cash or Bank Cr per payment
    - No overpayment
    - Paid purchases cannot be cancelled
    - Payment entries cannot be voided behind the purchase's back
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        self.product = Product.objects.create(
            sku="CPW-2MM", name="Copper Wire 2mm", cost_price="40.00", sell_price="70.00"
        )
        self.purchase = purchase_service.approve_purchase(
            purchase_service.create_purchase(
                supplier_name="Allied Supplies Ltd",
                order_date=date(2025, 2, 3),
                due_date=date(2025, 3, 5),
                items=[{"product": self.product, "quantity": 10}],
            )
        )

    def test_partial_payment_while_approved(self):
        payment = purchase_service.record_purchase_payment(
            self.purchase, amount="150.00", method="cash", payment_date=date(2025, 2, 10)
        )

        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.payment_status, "partial")
        self.assertEqual(self.purchase.remaining_balance, Decimal("250.00"))
        self.assertEqual(payment.journal_entry.transaction_kind, JournalEntry.Kind.CASH_OUT)

        self.assertEqual(_balance("2-1101"), Decimal("250.00"))
        self.assertEqual(_balance("1-1101"), Decimal("-150.00"))

    def test_full_payment_after_receiving(self):
        purchase = purchase_service.receive_purchase(self.purchase)

        purchase_service.record_purchase_payment(purchase, amount="400.00", method="bank")

        purchase.refresh_from_db()
        self.assertEqual(purchase.payment_status, "paid")
        self.assertEqual(_balance("2-1101"), Decimal("0.00"))
        self.assertEqual(_balance("1-1102"), Decimal("-400.00"))

    def test_overpayment_is_rejected(self):
        with self.assertRaises(ValidationError):
            purchase_service.record_purchase_payment(self.purchase, amount="400.01", method="cash")
        self.assertEqual(PurchasePayment.objects.count(), 0)

    def test_draft_cannot_be_paid(self):
        draft = purchase_service.create_purchase(
            supplier_name="Allied Supplies Ltd", items=[{"product": self.product, "quantity": 1}]
        )
        with self.assertRaises(InvalidStateError):
            purchase_service.record_purchase_payment(draft, amount="10.00", method="cash")

    def test_payment_entry_cannot_be_voided_from_the_journal(self):
        payment = purchase_service.record_purchase_payment(self.purchase, amount="150.00", method="cash")

        with self.assertRaises(InvalidStateError):
            journals.void_journal_entry(payment.journal_entry_id)

        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.remaining_balance, Decimal("250.00"))
        self.assertEqual(_balance("2-1101"), Decimal("250.00"))

    def test_paid_purchase_cannot_be_cancelled(self):
        purchase_service.record_purchase_payment(self.purchase, amount="10.00", method="cash")

        with self.assertRaises(InvalidStateError):
            purchase_service.cancel_purchase(self.purchase)

    def test_payables_aging(self):
        purchase_service.record_purchase_payment(self.purchase, amount="100.00", method="cash")

        self.assertEqual(list(purchase_service.get_outstanding_purchases()), [self.purchase])

        aging = purchase_service.get_payables_aging(as_of=date(2025, 3, 20))
        self.assertEqual(aging["total_outstanding"], 300.0)
        self.assertEqual(aging["buckets"]["1_30"], 300.0)
        self.assertEqual(aging["documents"][0]["days_overdue"], 15)

        current = purchase_service.get_payables_aging(as_of=date(2025, 3, 1))
        self.assertEqual(current["buckets"]["current"], 300.0)
