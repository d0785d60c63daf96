from django.contrib import admin

from .models import Product, StockMovement


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "price", "quantity", "disable_stock_management", "company")
    search_fields = ("name", "sku")
    list_filter = ("disable_stock_management", "is_active")


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("product", "delta", "quantity_after", "reason", "reference", "created_at")
    list_filter = ("reason",)

    def has_change_permission(self, request, obj=None):
        return False
