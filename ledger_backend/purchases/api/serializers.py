# purchases/api/serializers.py

from rest_framework import serializers

from accounting.api.serializers.documents import DocumentLineInputSerializer
from purchases.models import Purchase, PurchaseItem, PurchasePayment


class PurchaseItemSerializer(serializers.ModelSerializer):
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = PurchaseItem
        fields = [
            "id",
            "line_no",
            "product",
            "product_sku",
            "product_name",
            "unit",
            "quantity",
            "unit_price",
            "discount_percent",
            "discount_amount",
            "subtotal",
            "unit_cost",
        ]
        read_only_fields = fields


class PurchasePaymentSerializer(serializers.ModelSerializer):
    journal_number = serializers.CharField(source="journal_entry.number", read_only=True, default=None)

    class Meta:
        model = PurchasePayment
        fields = [
            "id",
            "payment_date",
            "amount",
            "method",
            "note",
            "journal_entry",
            "journal_number",
            "created_at",
        ]
        read_only_fields = fields


class PurchaseSerializer(serializers.ModelSerializer):
    items = PurchaseItemSerializer(many=True, read_only=True)
    payments = PurchasePaymentSerializer(many=True, read_only=True)
    journal_number = serializers.CharField(source="journal_entry.number", read_only=True, default=None)

    class Meta:
        model = Purchase
        fields = [
            "id",
            "order_number",
            "supplier_name",
            "supplier_address",
            "supplier_phone",
            "order_date",
            "due_date",
            "status",
            "payment_status",
            "subtotal",
            "discount_total",
            "subtotal_after_discount",
            "tax_rate",
            "tax_amount",
            "total",
            "paid_amount",
            "remaining_balance",
            "notes",
            "journal_entry",
            "journal_number",
            "approved_at",
            "received_at",
            "cancelled_at",
            "cancellation_reason",
            "items",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PurchaseWriteSerializer(serializers.Serializer):
    supplier_name = serializers.CharField(max_length=200)
    supplier_address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    supplier_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    order_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = DocumentLineInputSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        order_date = attrs.get("order_date")
        due_date = attrs.get("due_date")
        if order_date and due_date and due_date < order_date:
            raise serializers.ValidationError({"due_date": "due_date cannot be before order_date"})
        return attrs
