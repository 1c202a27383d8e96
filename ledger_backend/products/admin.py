# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe stock ledger):

- Product master data is editable, current_stock is NOT.
- Initial stock entered on a new product is routed through add_stock()
  (reference_module=initial_stock) so the ledger starts with a movement.
- StockMovement rows are immutable and shown read-only.
"""

from __future__ import annotations

from django import forms
from django.contrib import admin

from products.models import Product, StockMovement
from products.services.stock_ledger import add_stock


class ProductAdminForm(forms.ModelForm):
    initial_stock = forms.IntegerField(
        min_value=0,
        required=False,
        help_text="Only used when creating a product; recorded as an initial_stock movement.",
    )

    class Meta:
        model = Product
        fields = ("sku", "name", "unit", "cost_price", "sell_price", "reorder_level", "is_active")


class StockMovementInline(admin.TabularInline):
    model = StockMovement
    extra = 0
    can_delete = False
    show_change_link = False
    fields = (
        "created_at",
        "movement_type",
        "quantity",
        "previous_stock",
        "new_stock",
        "unit_cost",
        "reference_module",
        "reference_number",
        "performed_by",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    form = ProductAdminForm

    list_display = (
        "sku",
        "name",
        "unit",
        "cost_price",
        "sell_price",
        "current_stock",
        "reorder_level",
        "is_low_stock",
        "is_active",
    )
    list_filter = ("is_active", "created_at")
    search_fields = ("sku", "name")
    ordering = ("name",)
    readonly_fields = ("current_stock", "created_at", "updated_at")

    inlines = [StockMovementInline]

    def get_fields(self, request, obj=None):
        fields = list(super().get_fields(request, obj))
        if obj is not None and "initial_stock" in fields:
            fields.remove("initial_stock")
        return fields

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)

        initial = form.cleaned_data.get("initial_stock") if not change else None
        if initial:
            add_stock(
                obj,
                initial,
                reference_module=StockMovement.ReferenceModule.INITIAL_STOCK,
                note="Initial stock (admin)",
                user=request.user,
            )


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    """
    View-only stock ledger for audit visibility.
    """

    list_display = (
        "created_at",
        "product",
        "movement_type",
        "quantity",
        "previous_stock",
        "new_stock",
        "total_cost",
        "reference_module",
        "reference_number",
        "performed_by",
    )
    list_filter = ("movement_type", "reference_module", "created_at")
    search_fields = ("product__name", "product__sku", "reference_number", "note")
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
