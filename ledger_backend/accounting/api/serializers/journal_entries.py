# accounting/api/serializers/journal_entries.py

from rest_framework import serializers

from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.services.journal_entry_service import DOCUMENT_REFERENCE_TYPES


class JournalLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = JournalLine
        fields = ("id", "line_no", "account", "account_code", "account_name", "debit", "credit", "memo")
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    lines = JournalLineSerializer(many=True, read_only=True)

    class Meta:
        model = JournalEntry
        fields = (
            "id",
            "number",
            "entry_date",
            "description",
            "transaction_kind",
            "status",
            "total_debit",
            "total_credit",
            "reference_type",
            "reference_id",
            "reference_number",
            "posted_at",
            "voided_at",
            "void_reason",
            "created_by",
            "created_at",
            "updated_at",
            "lines",
        )
        read_only_fields = fields


class JournalLineInputSerializer(serializers.Serializer):
    """
    One line of a manual entry. The account may be given by id or by code.
    """

    account_id = serializers.IntegerField(required=False)
    account_code = serializers.CharField(required=False, allow_blank=False)
    debit = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, default=0)
    credit = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, default=0)
    memo = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("account_id") and not attrs.get("account_code"):
            raise serializers.ValidationError("account_id or account_code is required")
        return attrs


class JournalEntryCreateSerializer(serializers.Serializer):
    entry_date = serializers.DateField(required=False)
    description = serializers.CharField()
    transaction_kind = serializers.ChoiceField(
        choices=JournalEntry.Kind.choices,
        required=False,
        default=JournalEntry.Kind.GENERAL,
    )
    number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    post = serializers.BooleanField(required=False, default=False)
    reference_type = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    reference_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    reference_number = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    lines = JournalLineInputSerializer(many=True, allow_empty=False)

    def validate_reference_type(self, value):
        if value.strip() in DOCUMENT_REFERENCE_TYPES:
            raise serializers.ValidationError(f"{value!r} is reserved for sales and purchases postings")
        return value


class JournalEntryUpdateSerializer(serializers.Serializer):
    entry_date = serializers.DateField(required=False)
    description = serializers.CharField(required=False)
    transaction_kind = serializers.ChoiceField(choices=JournalEntry.Kind.choices, required=False)
    lines = JournalLineInputSerializer(many=True, allow_empty=False)


class VoidJournalEntrySerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
