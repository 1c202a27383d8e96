# sales/admin.py

from django.contrib import admin

from sales.models import Sale, SaleItem, SalePayment


# ======================================================
# SALE ADMIN
# ======================================================


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    can_delete = False
    fields = (
        "line_no",
        "product",
        "quantity",
        "unit_price",
        "discount_amount",
        "subtotal",
        "unit_cost",
        "cost_amount",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class SalePaymentInline(admin.TabularInline):
    model = SalePayment
    extra = 0
    can_delete = False
    fields = ("payment_date", "amount", "method", "note", "journal_entry")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    """
    Read-only view: lifecycle changes go through sales/services/sale_service.py
    so the ledger and the stock ledger stay in step.
    """

    list_display = (
        "invoice_number",
        "customer_name",
        "invoice_date",
        "due_date",
        "status",
        "payment_status",
        "total",
        "remaining_balance",
        "gross_profit",
    )
    search_fields = ("invoice_number", "customer_name")
    list_filter = ("status", "payment_status", "invoice_date")
    inlines = [SaleItemInline, SalePaymentInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
