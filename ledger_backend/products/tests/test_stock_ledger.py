# products/tests/test_stock_ledger.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import TestCase

from accounting.services.exceptions import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from products.models import Product, StockMovement
from products.services import stock_ledger

User = get_user_model()

Module = StockMovement.ReferenceModule


class StockLedgerTests(TestCase):
    """
    Stock ledger service.

    GUARANTEES:
    - current_stock only changes through the ledger service
    - Every change appends exactly one movement with consistent arithmetic
    - Stock never goes below zero; a refused reduction writes nothing
    - Movements are immutable
    """

    def setUp(self):
        self.user = User.objects.create_user(username="storekeeper", password="password123")
        self.product = Product.objects.create(
            sku="BLT-M8",
            name="Steel Bolt M8",
            cost_price=Decimal("60.00"),
            sell_price=Decimal("100.00"),
            reorder_level=5,
        )

    def test_add_stock_records_movement(self):
        change = stock_ledger.add_stock(
            self.product,
            20,
            reference_module=Module.PURCHASE,
            unit_cost="55.00",
            reference_number="PO-202501-0001",
            user=self.user,
        )

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 20)
        self.assertEqual(change.previous_stock, 0)
        self.assertEqual(change.new_stock, 20)

        movement = change.movement
        self.assertEqual(movement.movement_type, StockMovement.MovementType.IN)
        self.assertEqual(movement.quantity, 20)
        self.assertEqual(movement.unit_cost, Decimal("55.00"))
        self.assertEqual(movement.total_cost, Decimal("1100.00"))
        self.assertEqual(movement.performed_by, self.user)

    def test_unit_cost_defaults_to_cost_price(self):
        change = stock_ledger.add_stock(self.product, 2)
        self.assertEqual(change.movement.unit_cost, Decimal("60.00"))

    def test_reduce_stock(self):
        stock_ledger.add_stock(self.product, 10)

        change = stock_ledger.reduce_stock(self.product, 4, reference_module=Module.SALES)

        self.assertEqual(change.new_stock, 6)
        self.assertEqual(change.movement.quantity, -4)
        self.assertEqual(change.movement.movement_type, StockMovement.MovementType.OUT)

    def test_reduce_below_zero_writes_nothing(self):
        stock_ledger.add_stock(self.product, 3)

        with self.assertRaises(InsufficientStockError) as ctx:
            stock_ledger.reduce_stock(self.product, 5)

        self.assertEqual(ctx.exception.requested, 5)
        self.assertEqual(ctx.exception.available, 3)
        self.assertEqual(ctx.exception.shortfall, 2)

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 3)
        self.assertEqual(StockMovement.objects.filter(product=self.product).count(), 1)

    def test_quantity_must_be_positive_whole_number(self):
        for bad in (0, -1, "2.5", 2.5, Decimal("1.5"), None, "", True, "abc"):
            with self.subTest(quantity=bad):
                with self.assertRaises(ValidationError):
                    stock_ledger.add_stock(self.product, bad)

        self.assertEqual(StockMovement.objects.count(), 0)

    def test_adjust_stock_sets_level(self):
        stock_ledger.add_stock(self.product, 10)

        change = stock_ledger.adjust_stock(self.product, 7, note="Cycle count")

        self.assertEqual(change.movement.movement_type, StockMovement.MovementType.ADJUST)
        self.assertEqual(change.movement.quantity, -3)
        self.assertEqual(change.new_stock, 7)

        self.assertIsNone(stock_ledger.adjust_stock(self.product, 7))
        self.assertEqual(stock_ledger.adjust_stock(self.product, 0).new_stock, 0)

    def test_adjust_rejects_negative_target(self):
        with self.assertRaises(ValidationError):
            stock_ledger.adjust_stock(self.product, -1)

    def test_unknown_product(self):
        other = Product(sku="GHOST", name="Ghost")
        with self.assertRaises(NotFoundError):
            stock_ledger.add_stock(other, 1)

    def test_availability_sums_requested_quantities(self):
        stock_ledger.add_stock(self.product, 5)

        rows = stock_ledger.check_stock_availability([(self.product, 3), (self.product.pk, 4)])

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].requested, 7)
        self.assertEqual(rows[0].shortfall, 2)
        self.assertFalse(rows[0].sufficient)

        with self.assertRaises(InsufficientStockError):
            stock_ledger.ensure_stock_available([(self.product, 3), (self.product, 4)])

    def test_availability_is_read_only(self):
        stock_ledger.add_stock(self.product, 5)
        stock_ledger.check_stock_availability([(self.product, 50)])

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 5)
        self.assertEqual(StockMovement.objects.count(), 1)

    def test_history_lists_every_movement(self):
        stock_ledger.add_stock(self.product, 5)
        stock_ledger.reduce_stock(self.product, 2)
        stock_ledger.add_stock(self.product, 1)

        history = stock_ledger.get_stock_history(self.product)
        self.assertEqual(sorted(history.values_list("quantity", flat=True)), [-2, 1, 5])
        self.assertEqual(sum(m.quantity for m in history), 4)

    def test_low_stock_products(self):
        stock_ledger.add_stock(self.product, 5)
        plenty = Product.objects.create(sku="WSC-440", name="Wood Screw 4x40", reorder_level=2)
        stock_ledger.add_stock(plenty, 50)

        self.assertEqual(list(stock_ledger.get_low_stock_products()), [self.product])

    def test_movements_are_immutable(self):
        movement = stock_ledger.add_stock(self.product, 5).movement

        movement.note = "edited"
        with self.assertRaises(DjangoValidationError):
            movement.save()
        with self.assertRaises(DjangoValidationError):
            movement.delete()

    def test_negative_stock_is_rejected_by_model(self):
        self.product.current_stock = -1
        with self.assertRaises(DjangoValidationError):
            self.product.save()
