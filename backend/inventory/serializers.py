# inventory/serializers.py

from rest_framework import serializers

from .models import Product, StockMovement


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            "id", "public_id", "name", "description", "sku", "price", "cost", "quantity",
            "unit_code", "disable_stock_management", "image_url", "is_active",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class ProductInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    sku = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, default=0)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    unit_code = serializers.CharField(max_length=5, required=False, default=Product.DEFAULT_UNIT_CODE)
    disable_stock_management = serializers.BooleanField(required=False, default=False)
    image_url = serializers.URLField(max_length=500, required=False, allow_blank=True, default="")
    is_active = serializers.BooleanField(required=False, default=True)


class ProductPatchSerializer(serializers.Serializer):
    price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    disable_stock_management = serializers.BooleanField(required=False)
    image_url = serializers.URLField(max_length=500, required=False, allow_blank=True)


class StockMovementSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockMovement
        fields = ["id", "delta", "quantity_after", "reason", "reference", "created_at"]
        read_only_fields = fields
