# purchases/admin.py

from django.contrib import admin

from purchases.models import Purchase, PurchaseItem, PurchasePayment


class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 0
    can_delete = False
    fields = ("line_no", "product", "quantity", "unit_price", "discount_amount", "subtotal")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class PurchasePaymentInline(admin.TabularInline):
    model = PurchasePayment
    extra = 0
    can_delete = False
    fields = ("payment_date", "amount", "method", "note", "journal_entry")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "supplier_name",
        "order_date",
        "due_date",
        "status",
        "payment_status",
        "total",
        "remaining_balance",
    )
    search_fields = ("order_number", "supplier_name")
    list_filter = ("status", "payment_status", "order_date")
    inlines = [PurchaseItemInline, PurchasePaymentInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
