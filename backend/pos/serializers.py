# pos/serializers.py

from decimal import Decimal

from rest_framework import serializers

from .models import PosOrder, PosOrderItem, PosSettings, PosTable


class PosSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = PosSettings
        fields = [
            "auto_print_enabled", "default_printer_address", "table_layout_type",
            "tax_rate", "service_charge_rate", "updated_at",
        ]
        read_only_fields = fields


class PosSettingsInputSerializer(serializers.Serializer):
    auto_print_enabled = serializers.BooleanField(required=False)
    default_printer_address = serializers.CharField(max_length=100, required=False, allow_blank=True)
    table_layout_type = serializers.CharField(max_length=4, required=False)
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=2, required=False)
    service_charge_rate = serializers.DecimalField(max_digits=6, decimal_places=2, required=False)


class PosOrderSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = PosOrder
        fields = ["id", "order_number", "status", "total", "created_at"]
        read_only_fields = fields


class PosTableSerializer(serializers.ModelSerializer):
    class Meta:
        model = PosTable
        fields = ["id", "name", "label", "capacity", "position_x", "position_y", "is_active", "created_at"]
        read_only_fields = fields


class PosTableInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50, required=False, allow_blank=True)
    label = serializers.CharField(max_length=100, required=False, allow_blank=True)
    capacity = serializers.IntegerField(required=False)
    position_x = serializers.IntegerField(required=False)
    position_y = serializers.IntegerField(required=False)
    is_active = serializers.BooleanField(required=False)


class PosOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = PosOrderItem
        fields = ["id", "product", "product_name", "quantity", "unit_price", "amount", "notes"]
        read_only_fields = fields


class PosOrderSerializer(serializers.ModelSerializer):
    items = PosOrderItemSerializer(many=True, read_only=True)
    table_name = serializers.CharField(source="table.name", read_only=True, default=None)
    receipt_number = serializers.CharField(source="receipt.receipt_number", read_only=True, default=None)

    class Meta:
        model = PosOrder
        fields = [
            "id", "order_number", "table", "table_name", "table_number", "order_type", "status",
            "subtotal", "service_charge", "tax_rate", "tax_amount", "total", "notes",
            "receipt", "receipt_number", "items", "created_at", "updated_at",
        ]
        read_only_fields = fields


class PosOrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=0)
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class PosOrderCreateSerializer(serializers.Serializer):
    items = PosOrderItemInputSerializer(many=True)
    order_type = serializers.ChoiceField(choices=PosOrder.OrderType.choices, required=False, default=PosOrder.OrderType.DINE_IN)
    table_id = serializers.IntegerField(required=False, allow_null=True)
    table_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PosOrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ChitRequestSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    printer_address = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
