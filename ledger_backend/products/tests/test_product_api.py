# products/tests/test_product_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Product, StockMovement

User = get_user_model()

BASE = "/api/products/products"


class ProductAPITests(TestCase):
    """
    Product endpoints and stock actions.

    GUARANTEES:
    - current_stock cannot be written through the product payload
    - Stock actions require products.add_stockmovement
    - Insufficient stock maps to 400 with the shortfall in the context
    """

    def setUp(self):
        self.manager = User.objects.create_user(username="manager", password="password123")
        self.manager.user_permissions.add(
            Permission.objects.get(codename="add_stockmovement", content_type__app_label="products")
        )
        self.viewer = User.objects.create_user(username="viewer", password="password123")

        self.client = APIClient()
        self.client.force_authenticate(user=self.manager)

        self.product = Product.objects.create(
            sku="BLT-M8",
            name="Steel Bolt M8",
            cost_price=Decimal("60.00"),
            sell_price=Decimal("100.00"),
            reorder_level=3,
        )

    def test_create_product_ignores_current_stock(self):
        response = self.client.post(
            f"{BASE}/",
            {"sku": "wsc-440", "name": "Wood Screw", "cost_price": "10.00", "sell_price": "15.00", "current_stock": 99},
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["sku"], "WSC-440")
        self.assertEqual(response.data["current_stock"], 0)

    def test_stock_in_and_out(self):
        url = f"{BASE}/{self.product.pk}/"

        stock_in = self.client.post(f"{url}stock-in/", {"quantity": 10, "reference_module": "purchase"}, format="json")
        self.assertEqual(stock_in.status_code, 201, stock_in.data)
        self.assertEqual(stock_in.data["new_stock"], 10)

        stock_out = self.client.post(f"{url}stock-out/", {"quantity": 4}, format="json")
        self.assertEqual(stock_out.status_code, 201)
        self.assertEqual(stock_out.data["quantity"], -4)

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 6)

    def test_stock_out_shortfall(self):
        response = self.client.post(f"{BASE}/{self.product.pk}/stock-out/", {"quantity": 2}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "InsufficientStockError")
        self.assertEqual(response.data["context"]["shortfall"], 2)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_stock_actions_require_permission(self):
        client = APIClient()
        client.force_authenticate(user=self.viewer)

        response = client.post(f"{BASE}/{self.product.pk}/stock-in/", {"quantity": 1}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_adjust_and_history(self):
        url = f"{BASE}/{self.product.pk}/"
        self.client.post(f"{url}stock-in/", {"quantity": 10}, format="json")

        adjusted = self.client.post(f"{url}adjust/", {"new_quantity": 8, "note": "count"}, format="json")
        self.assertEqual(adjusted.status_code, 201)
        self.assertEqual(adjusted.data["movement_type"], "ADJUST")

        unchanged = self.client.post(f"{url}adjust/", {"new_quantity": 8}, format="json")
        self.assertEqual(unchanged.status_code, 200)

        history = self.client.get(f"{url}history/")
        self.assertEqual(history.status_code, 200)
        self.assertEqual(history.data["count"], 2)

        self.assertEqual(self.client.get(f"{url}history/", {"date_from": "yesterday"}).status_code, 400)

    def test_low_stock_alerts(self):
        response = self.client.get(f"{BASE}/alerts/low-stock/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([p["sku"] for p in response.data["results"]], ["BLT-M8"])
