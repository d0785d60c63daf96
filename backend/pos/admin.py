from django.contrib import admin

from .models import PosOrder, PosOrderItem, PosSettings, PosTable


@admin.register(PosSettings)
class PosSettingsAdmin(admin.ModelAdmin):
    list_display = ("company", "table_layout_type", "tax_rate", "service_charge_rate", "auto_print_enabled")


@admin.register(PosTable)
class PosTableAdmin(admin.ModelAdmin):
    list_display = ("name", "label", "company", "capacity", "is_active")
    list_filter = ("is_active",)


class PosOrderItemInline(admin.TabularInline):
    model = PosOrderItem
    extra = 0


@admin.register(PosOrder)
class PosOrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "company", "order_type", "status", "table_number", "total", "created_at")
    list_filter = ("status", "order_type")
    search_fields = ("order_number", "table_number")
    inlines = [PosOrderItemInline]
