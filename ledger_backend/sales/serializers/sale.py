# sales/serializers/sale.py

from rest_framework import serializers

from accounting.api.serializers.documents import DocumentLineInputSerializer
from sales.models import Sale, SaleItem, SalePayment


class SaleItemSerializer(serializers.ModelSerializer):
    """
    Sale line item serializer (read-only).
    """

    class Meta:
        model = SaleItem
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
            "cost_amount",
        ]
        read_only_fields = fields


class SalePaymentSerializer(serializers.ModelSerializer):
    journal_number = serializers.CharField(source="journal_entry.number", read_only=True, default=None)

    class Meta:
        model = SalePayment
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


class SaleSerializer(serializers.ModelSerializer):
    items = SaleItemSerializer(many=True, read_only=True)
    payments = SalePaymentSerializer(many=True, read_only=True)
    journal_number = serializers.CharField(source="journal_entry.number", read_only=True, default=None)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Sale
        fields = [
            "id",
            "invoice_number",
            "customer_name",
            "customer_address",
            "customer_phone",
            "invoice_date",
            "due_date",
            "status",
            "payment_status",
            "is_overdue",
            "subtotal",
            "discount_total",
            "subtotal_after_discount",
            "tax_rate",
            "tax_amount",
            "total",
            "paid_amount",
            "remaining_balance",
            "cogs",
            "gross_profit",
            "notes",
            "journal_entry",
            "journal_number",
            "approved_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
            "items",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class SaleWriteSerializer(serializers.Serializer):
    """
    Create / update body. Totals are never accepted from the client.
    """

    customer_name = serializers.CharField(max_length=200)
    customer_address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    customer_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    invoice_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = DocumentLineInputSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        invoice_date = attrs.get("invoice_date")
        due_date = attrs.get("due_date")
        if invoice_date and due_date and due_date < invoice_date:
            raise serializers.ValidationError({"due_date": "due_date cannot be before invoice_date"})
        return attrs
