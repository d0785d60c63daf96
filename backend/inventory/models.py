# inventory/models.py
"""
Inventory models.

Product.quantity is the on-hand stock. It is only changed through
inventory.stock.adjust_stock (or a direct edit of the product, which is
recorded as an ADJUSTMENT movement).
"""

import uuid
from decimal import Decimal

from django.db import models

from accounts.models import Company


class Product(models.Model):
    DEFAULT_UNIT_CODE = "C62"  # UN/ECE "one" (unit)

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="products")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    sku = models.CharField(max_length=64, blank=True, default="")
    price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    unit_code = models.CharField(max_length=5, default=DEFAULT_UNIT_CODE)
    disable_stock_management = models.BooleanField(
        default=False,
        help_text="Services and untracked goods: sales never change quantity",
    )
    image_url = models.URLField(max_length=500, blank=True, default="")
    # Storage name of an uploaded image; empty when image_url points elsewhere
    image_path = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "sku"],
                condition=~models.Q(sku=""),
                name="uniq_product_sku_per_company",
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def tracks_stock(self) -> bool:
        return not self.disable_stock_management


class StockMovement(models.Model):
    class Reason(models.TextChoices):
        INVOICE_ISSUED = "INVOICE_ISSUED", "Invoice issued"
        INVOICE_REVERSED = "INVOICE_REVERSED", "Invoice cancelled or deleted"
        POS_SALE = "POS_SALE", "POS sale"
        ADJUSTMENT = "ADJUSTMENT", "Manual adjustment"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="movements")
    delta = models.DecimalField(max_digits=12, decimal_places=2)
    quantity_after = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=20, choices=Reason.choices)
    reference = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["company", "reference"]),
        ]

    def __str__(self):
        return f"{self.product_id} {self.delta:+} ({self.reason})"
