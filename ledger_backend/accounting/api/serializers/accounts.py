# accounting/api/serializers/accounts.py

from rest_framework import serializers

from accounting.models.account import Account


class AccountListSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for listing the chart of accounts.
    """

    class Meta:
        model = Account
        fields = (
            "id",
            "code",
            "name",
            "account_type",
            "normal_balance",
            "category",
            "role",
            "opening_balance",
            "is_active",
        )
        read_only_fields = fields


class AccountCreateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=10, required=False, allow_blank=True)
    name = serializers.CharField(max_length=150)
    account_type = serializers.ChoiceField(choices=Account.ACCOUNT_TYPES, required=False)
    normal_balance = serializers.ChoiceField(choices=Account.NORMAL_BALANCES, required=False)
    category = serializers.ChoiceField(
        choices=Account.Category.choices,
        required=False,
        default=Account.Category.OTHER,
    )
    role = serializers.ChoiceField(choices=Account.Role.choices, required=False, allow_blank=True)
    opening_balance = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not (attrs.get("code") or "").strip() and not attrs.get("account_type"):
            raise serializers.ValidationError("account_type is required when code is omitted")
        return attrs
