# sales/tests/test_sale_api.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Product
from products.services.stock_ledger import add_stock
from sales.models import Sale

User = get_user_model()

BASE = "/api/sales/sales"


class SaleAPITests(TestCase):
    """
    Staff sales endpoints.

    GUARANTEES:
    - Writes and lifecycle actions require sales.change_sale
    - Totals are computed server-side
    - Domain failures map to 4xx with a machine-readable code
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())

        self.clerk = User.objects.create_user(username="clerk", password="password123")
        self.clerk.user_permissions.add(
            Permission.objects.get(codename="change_sale", content_type__app_label="sales")
        )
        self.viewer = User.objects.create_user(username="viewer", password="password123")

        self.client = APIClient()
        self.client.force_authenticate(user=self.clerk)

        self.product = Product.objects.create(
            sku="BLT-M8", name="Steel Bolt M8", cost_price="60.00", sell_price="100.00"
        )
        add_stock(self.product, 20)

    def _create(self, quantity=5, **extra):
        body = {
            "customer_name": "Acme Hardware",
            "invoice_date": "2025-01-01",
            "due_date": "2025-01-31",
            "items": [{"product": str(self.product.pk), "quantity": quantity}],
        }
        body.update(extra)
        return self.client.post(f"{BASE}/", body, format="json")

    def test_anonymous_is_rejected(self):
        response = APIClient().get(f"{BASE}/")
        self.assertEqual(response.status_code, 401)

    def test_create_computes_totals(self):
        response = self._create(total="1.00")

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["invoice_number"], "INV-202501-0001")
        self.assertEqual(response.data["status"], Sale.STATUS_DRAFT)
        self.assertEqual(Decimal(response.data["total"]), Decimal("500.00"))
        self.assertEqual(len(response.data["items"]), 1)

    def test_create_requires_permission(self):
        self.client.force_authenticate(user=self.viewer)
        self.assertEqual(self._create().status_code, 403)
        self.assertEqual(Sale.objects.count(), 0)

    def test_due_date_before_invoice_date(self):
        response = self._create(due_date="2024-12-01")
        self.assertEqual(response.status_code, 400)

    def test_approve_pay_and_complete(self):
        sale_id = self._create().data["id"]

        approved = self.client.post(f"{BASE}/{sale_id}/approve/")
        self.assertEqual(approved.status_code, 200, approved.data)
        self.assertEqual(approved.data["status"], Sale.STATUS_APPROVED)
        self.assertEqual(approved.data["journal_number"], "JU-202501-0001")

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 15)

        paid = self.client.post(
            f"{BASE}/{sale_id}/payments/",
            {"amount": "500.00", "method": "bank", "payment_date": "2025-01-20"},
            format="json",
        )
        self.assertEqual(paid.status_code, 201, paid.data)
        self.assertIsNotNone(paid.data["journal_number"])

        payments = self.client.get(f"{BASE}/{sale_id}/payments/")
        self.assertEqual(len(payments.data), 1)

        completed = self.client.post(f"{BASE}/{sale_id}/complete/")
        self.assertEqual(completed.status_code, 200, completed.data)
        self.assertEqual(completed.data["status"], Sale.STATUS_COMPLETED)
        self.assertEqual(completed.data["payment_status"], "paid")

    def test_insufficient_stock_maps_to_400(self):
        sale_id = self._create(quantity=50).data["id"]

        response = self.client.post(f"{BASE}/{sale_id}/approve/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "InsufficientStockError")
        self.assertEqual(Sale.objects.get(pk=sale_id).status, Sale.STATUS_DRAFT)

    def test_overpayment_maps_to_400(self):
        sale_id = self._create().data["id"]
        self.client.post(f"{BASE}/{sale_id}/approve/")

        response = self.client.post(
            f"{BASE}/{sale_id}/payments/", {"amount": "900.00", "method": "cash"}, format="json"
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "ValidationError")

    def test_cancel_approved_sale(self):
        sale_id = self._create().data["id"]
        self.client.post(f"{BASE}/{sale_id}/approve/")

        response = self.client.post(f"{BASE}/{sale_id}/cancel/", {"reason": "Customer withdrew"}, format="json")

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["status"], Sale.STATUS_CANCELLED)
        self.assertEqual(response.data["cancellation_reason"], "Customer withdrew")
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 20)

    def test_approved_sale_cannot_be_deleted(self):
        sale_id = self._create().data["id"]
        self.client.post(f"{BASE}/{sale_id}/approve/")

        response = self.client.delete(f"{BASE}/{sale_id}/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "InvalidStateError")

    def test_lifecycle_requires_permission(self):
        sale_id = self._create().data["id"]
        self.client.force_authenticate(user=self.viewer)

        self.assertEqual(self.client.post(f"{BASE}/{sale_id}/approve/").status_code, 403)

    def test_list_filters_and_reports(self):
        self._create()
        second = self._create(customer_name="Northside Builders").data["id"]
        self.client.post(f"{BASE}/{second}/approve/")

        listed = self.client.get(f"{BASE}/", {"status": Sale.STATUS_APPROVED})
        self.assertEqual(listed.data["count"], 1)

        searched = self.client.get(f"{BASE}/", {"q": "northside"})
        self.assertEqual(searched.data["count"], 1)

        outstanding = self.client.get(f"{BASE}/outstanding/")
        self.assertEqual(outstanding.data["count"], 1)

        aging = self.client.get(f"{BASE}/aging/", {"as_of": date(2025, 3, 15).isoformat()})
        self.assertEqual(aging.status_code, 200)
        self.assertEqual(aging.data["buckets"]["31_60"], 500.0)

        bad = self.client.get(f"{BASE}/aging/", {"as_of": "15/03/2025"})
        self.assertEqual(bad.status_code, 400)
