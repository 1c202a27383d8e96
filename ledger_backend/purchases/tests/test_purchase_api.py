# purchases/tests/test_purchase_api.py

from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Product
from purchases.models import Purchase

User = get_user_model()

BASE = "/api/purchases"


class PurchaseAPITests(TestCase):
    """
    Purchase order endpoints.

    GUARANTEES:
    - Writes and lifecycle actions require purchases.change_purchase
    - Unknown purchase ids map to 404
    """

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())

        self.buyer = User.objects.create_user(username="buyer", password="password123")
        self.buyer.user_permissions.add(
            Permission.objects.get(codename="change_purchase", content_type__app_label="purchases")
        )
        self.viewer = User.objects.create_user(username="viewer", password="password123")

        self.client = APIClient()
        self.client.force_authenticate(user=self.buyer)

        self.product = Product.objects.create(
            sku="CPW-2MM", name="Copper Wire 2mm", cost_price="40.00", sell_price="70.00"
        )

    def _create(self, **extra):
        body = {
            "supplier_name": "Allied Supplies Ltd",
            "order_date": "2025-02-03",
            "due_date": "2025-03-05",
            "items": [{"product": str(self.product.pk), "quantity": 10, "unit_price": "40.00"}],
        }
        body.update(extra)
        return self.client.post(f"{BASE}/", body, format="json")

    def test_full_flow(self):
        created = self._create()
        self.assertEqual(created.status_code, 201, created.data)
        self.assertEqual(created.data["order_number"], "PO-202502-0001")
        purchase_id = created.data["id"]

        approved = self.client.post(f"{BASE}/{purchase_id}/approve/")
        self.assertEqual(approved.status_code, 200, approved.data)
        self.assertEqual(approved.data["status"], Purchase.STATUS_APPROVED)
        self.assertIsNotNone(approved.data["journal_number"])

        received = self.client.post(f"{BASE}/{purchase_id}/receive/")
        self.assertEqual(received.data["status"], Purchase.STATUS_RECEIVED)

        paid = self.client.post(
            f"{BASE}/{purchase_id}/payments/", {"amount": "400.00", "method": "bank"}, format="json"
        )
        self.assertEqual(paid.status_code, 201, paid.data)

        detail = self.client.get(f"{BASE}/{purchase_id}/")
        self.assertEqual(detail.data["payment_status"], "paid")
        self.assertEqual(Decimal(detail.data["remaining_balance"]), Decimal("0.00"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 10)

    def test_patch_and_delete_draft(self):
        purchase_id = self._create().data["id"]

        patched = self.client.patch(f"{BASE}/{purchase_id}/", {"notes": "Urgent"}, format="json")
        self.assertEqual(patched.status_code, 200, patched.data)
        self.assertEqual(patched.data["notes"], "Urgent")

        deleted = self.client.delete(f"{BASE}/{purchase_id}/")
        self.assertEqual(deleted.status_code, 204)
        self.assertFalse(Purchase.objects.filter(pk=purchase_id).exists())

    def test_receive_draft_is_rejected(self):
        purchase_id = self._create().data["id"]

        response = self.client.post(f"{BASE}/{purchase_id}/receive/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "InvalidStateError")

    def test_writes_require_permission(self):
        purchase_id = self._create().data["id"]
        self.client.force_authenticate(user=self.viewer)

        self.assertEqual(self._create().status_code, 403)
        self.assertEqual(self.client.post(f"{BASE}/{purchase_id}/approve/").status_code, 403)
        self.assertEqual(self.client.get(f"{BASE}/{purchase_id}/").status_code, 200)

    def test_unknown_purchase(self):
        response = self.client.get(f"{BASE}/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(response.status_code, 404)

    def test_outstanding_and_aging(self):
        purchase_id = self._create().data["id"]
        self.client.post(f"{BASE}/{purchase_id}/approve/")

        outstanding = self.client.get(f"{BASE}/outstanding/")
        self.assertEqual(outstanding.data["count"], 1)

        aging = self.client.get(f"{BASE}/aging/", {"as_of": "2025-04-20"})
        self.assertEqual(aging.data["buckets"]["31_60"], 400.0)

        listed = self.client.get(f"{BASE}/", {"status": Purchase.STATUS_APPROVED})
        self.assertEqual(len(listed.data), 1)
