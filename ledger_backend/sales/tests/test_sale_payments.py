# sales/tests/test_sale_payments.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.services import journal_entry_service as journals
from accounting.services.balance_service import get_account_balance
from accounting.services.exceptions import ConfigurationError, InvalidStateError, ValidationError
from products.models import Product
from products.services.stock_ledger import add_stock
from sales.models import Sale, SalePayment
from sales.services import sale_service


def _balance(code):
    return get_account_balance(Account.objects.get(code=code))


class SalePaymentTests(TestCase):
    """
    Customer payments against approved invoices.

    GUARANTEES:
    - Each payment posts Cash/Bank Dr / Receivable Cr
    - paid_amount never exceeds the invoice total
    - payment_status follows unpaid -> partial -> paid
    - Completion requires a fully paid invoice
    - A payment entry cannot be voided behind the invoice's back
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        self.product = Product.objects.create(
            sku="BLT-M8", name="Steel Bolt M8", cost_price="60.00", sell_price="100.00"
        )
        add_stock(self.product, 50)

        self.sale = sale_service.approve_sale(
            sale_service.create_sale(
                customer_name="Acme Hardware",
                invoice_date=date(2025, 1, 1),
                due_date=date(2025, 1, 31),
                items=[{"product": self.product, "quantity": 10}],
            )
        )

    def test_partial_payment(self):
        payment = sale_service.record_sale_payment(
            self.sale, amount="400.00", method="bank", payment_date=date(2025, 1, 15)
        )

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.paid_amount, Decimal("400.00"))
        self.assertEqual(self.sale.remaining_balance, Decimal("600.00"))
        self.assertEqual(self.sale.payment_status, "partial")

        self.assertEqual(payment.journal_entry.transaction_kind, JournalEntry.Kind.CASH_IN)
        self.assertEqual(_balance("1-1102"), Decimal("400.00"))
        self.assertEqual(_balance("1-1103"), Decimal("600.00"))

    def test_full_payment_then_complete(self):
        sale_service.record_sale_payment(self.sale, amount="250.00", method="cash")
        sale_service.record_sale_payment(self.sale, amount="750.00", method="cash")

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.payment_status, "paid")
        self.assertEqual(self.sale.remaining_balance, Decimal("0.00"))
        self.assertEqual(_balance("1-1101"), Decimal("1000.00"))
        self.assertEqual(_balance("1-1103"), Decimal("0.00"))

        sale = sale_service.complete_sale(self.sale)
        self.assertEqual(sale.status, Sale.STATUS_COMPLETED)
        self.assertIsNotNone(sale.completed_at)

    def test_overpayment_is_rejected(self):
        with self.assertRaises(ValidationError):
            sale_service.record_sale_payment(self.sale, amount="1000.01", method="cash")

        self.assertEqual(SalePayment.objects.count(), 0)

    def test_non_positive_amount_is_rejected(self):
        for amount in ("0", "-5"):
            with self.subTest(amount=amount):
                with self.assertRaises(ValidationError):
                    sale_service.record_sale_payment(self.sale, amount=amount, method="cash")

    def test_unknown_method_writes_nothing(self):
        journal_count = JournalEntry.objects.count()

        with self.assertRaises(ConfigurationError):
            sale_service.record_sale_payment(self.sale, amount="10.00", method="cheque")

        self.assertEqual(JournalEntry.objects.count(), journal_count)

    def test_payment_requires_approved_sale(self):
        draft = sale_service.create_sale(
            customer_name="Walk-in", items=[{"product": self.product, "quantity": 1}]
        )
        with self.assertRaises(InvalidStateError):
            sale_service.record_sale_payment(draft, amount="10.00", method="cash")

    def test_complete_requires_full_payment(self):
        sale_service.record_sale_payment(self.sale, amount="100.00", method="cash")

        with self.assertRaises(InvalidStateError):
            sale_service.complete_sale(self.sale)

    def test_payment_entry_cannot_be_voided_from_the_journal(self):
        payment = sale_service.record_sale_payment(self.sale, amount="400.00", method="cash")

        with self.assertRaises(InvalidStateError):
            journals.void_journal_entry(payment.journal_entry_id)

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.paid_amount, Decimal("400.00"))
        self.assertEqual(_balance("1-1101"), Decimal("400.00"))
        self.assertEqual(_balance("1-1103"), Decimal("600.00"))

    def test_paid_sale_cannot_be_cancelled(self):
        sale_service.record_sale_payment(self.sale, amount="100.00", method="cash")

        with self.assertRaises(InvalidStateError):
            sale_service.cancel_sale(self.sale)

    def test_outstanding_and_aging(self):
        sale_service.record_sale_payment(self.sale, amount="400.00", method="cash")

        outstanding = list(sale_service.get_outstanding_sales())
        self.assertEqual(outstanding, [self.sale])

        aging = sale_service.get_receivables_aging(as_of=date(2025, 3, 15))
        self.assertEqual(aging["total_outstanding"], 600.0)
        self.assertEqual(aging["buckets"]["31_60"], 600.0)
        self.assertEqual(aging["documents"][0]["days_overdue"], 43)

    def test_paid_sales_leave_the_outstanding_list(self):
        sale_service.record_sale_payment(self.sale, amount="1000.00", method="bank")

        self.assertEqual(list(sale_service.get_outstanding_sales()), [])
        self.assertEqual(sale_service.get_receivables_aging()["total_outstanding"], 0.0)
