# accounting/api/serializers/documents.py

"""
Request bodies shared by the sales invoice and purchase order endpoints.
"""

from rest_framework import serializers

from accounting.services.documents import PAYMENT_METHODS


class DocumentLineInputSerializer(serializers.Serializer):
    product = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    discount_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False
    )
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)


class PaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    method = serializers.ChoiceField(choices=PAYMENT_METHODS)
    payment_date = serializers.DateField(required=False)
    note = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value


class CancelInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
