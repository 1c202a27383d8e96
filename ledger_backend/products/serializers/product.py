# products/serializers/product.py

"""
PRODUCT SERIALIZERS

- ProductSerializer: CRUD shape; current_stock is read-only (stock ledger owns it)
- StockMovementSerializer: read-only ledger rows
- StockChangeSerializer / StockAdjustSerializer: request bodies for stock actions
"""

from rest_framework import serializers

from products.models import Product, StockMovement


class ProductSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "unit",
            "cost_price",
            "sell_price",
            "current_stock",
            "reorder_level",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "current_stock",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]

    def validate_sku(self, value):
        value = (value or "").strip().upper()
        if not value:
            raise serializers.ValidationError("SKU is required")
        return value

    def validate_cost_price(self, value):
        if value is None or value < 0:
            raise serializers.ValidationError("Cost price must be non-negative")
        return value

    def validate_sell_price(self, value):
        if value is None or value < 0:
            raise serializers.ValidationError("Sell price must be non-negative")
        return value


class StockMovementSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    performed_by = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "product_sku",
            "movement_type",
            "quantity",
            "previous_stock",
            "new_stock",
            "unit_cost",
            "total_cost",
            "reference_module",
            "reference_id",
            "reference_number",
            "note",
            "performed_by",
            "created_at",
        ]
        read_only_fields = fields


class StockChangeSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, min_value=0)
    reference_module = serializers.ChoiceField(
        choices=StockMovement.ReferenceModule.choices,
        default=StockMovement.ReferenceModule.MANUAL_ADJUSTMENT,
    )
    note = serializers.CharField(required=False, allow_blank=True, default="")


class StockAdjustSerializer(serializers.Serializer):
    new_quantity = serializers.IntegerField(min_value=0)
    reference_module = serializers.ChoiceField(
        choices=StockMovement.ReferenceModule.choices,
        default=StockMovement.ReferenceModule.CORRECTION,
    )
    note = serializers.CharField(required=False, allow_blank=True, default="")
