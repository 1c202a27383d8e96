# accounting/admin.py

from django.contrib import admin

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalLine
from accounting.models.sequence import NumberSequence

# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "category",
        "role",
        "normal_balance",
        "is_active",
    )
    list_filter = ("account_type", "category", "role", "is_active")
    search_fields = ("code", "name")
    ordering = ("code",)
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("code", "name", "account_type", "normal_balance"),
            },
        ),
        (
            "Reporting",
            {
                "fields": ("category", "role", "opening_balance", "description"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active",),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# JOURNAL ENTRY (READ-ONLY)
# ============================================================


class JournalLineInline(admin.TabularInline):
    model = JournalLine
    extra = 0
    can_delete = False
    fields = ("line_no", "account", "account_code", "account_name", "debit", "credit", "memo")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "number",
        "entry_date",
        "description",
        "transaction_kind",
        "status",
        "total_debit",
        "total_credit",
        "reference_number",
    )
    list_filter = ("status", "transaction_kind", "entry_date")
    search_fields = ("number", "description", "reference_number")
    ordering = ("-entry_date", "-number")
    inlines = [JournalLineInline]

    readonly_fields = (
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
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(NumberSequence)
class NumberSequenceAdmin(admin.ModelAdmin):
    list_display = ("prefix", "last_value", "updated_at")
    search_fields = ("prefix",)
    readonly_fields = ("prefix", "last_value", "updated_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
