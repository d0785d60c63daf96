# pos/models.py
"""
POS models.

PosSettings doubles as the module switch: a company without a settings
row has the POS module disabled.
"""

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from accounts.models import Company

RATE_VALIDATORS = [MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))]


class PosSettings(models.Model):
    class TableLayout(models.TextChoices):
        LIST = "LIST", "List"
        MAP = "MAP", "Map"

    company = models.OneToOneField(Company, on_delete=models.CASCADE, related_name="pos_settings")
    auto_print_enabled = models.BooleanField(default=False)
    default_printer_address = models.CharField(max_length=100, blank=True, default="")
    table_layout_type = models.CharField(max_length=4, choices=TableLayout.choices, default=TableLayout.LIST)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"), validators=RATE_VALIDATORS)
    service_charge_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"), validators=RATE_VALIDATORS,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "POS settings"
        verbose_name_plural = "POS settings"

    def __str__(self):
        return f"POS settings for {self.company}"


class PosTable(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="pos_tables")
    name = models.CharField(max_length=50)
    label = models.CharField(max_length=100, blank=True, default="")
    capacity = models.PositiveIntegerField(default=4, validators=[MinValueValidator(1)])
    position_x = models.IntegerField(default=0)
    position_y = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["company", "name"], name="uniq_pos_table_name_per_company"),
        ]

    def __str__(self):
        return self.label or self.name


class PosOrder(models.Model):
    class OrderType(models.TextChoices):
        DINE_IN = "DINE_IN", "Dine in"
        TAKEAWAY = "TAKEAWAY", "Takeaway"
        DELIVERY = "DELIVERY", "Delivery"

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        KITCHEN = "KITCHEN", "In kitchen"
        TO_PAY = "TO_PAY", "To pay"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="pos_orders")
    order_number = models.CharField(max_length=20)
    table = models.ForeignKey(PosTable, null=True, blank=True, on_delete=models.SET_NULL, related_name="orders")
    table_number = models.CharField(max_length=50, blank=True, default="")
    order_type = models.CharField(max_length=10, choices=OrderType.choices, default=OrderType.DINE_IN)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.KITCHEN)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    service_charge = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    notes = models.TextField(blank=True, default="")

    receipt = models.OneToOneField(
        "receipts.Receipt",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="pos_order",
    )
    created_by = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["company", "order_number"], name="uniq_pos_order_number_per_company"),
        ]
        indexes = [
            models.Index(fields=["company", "status"]),
        ]

    def __str__(self):
        return self.order_number


class PosOrderItem(models.Model):
    order = models.ForeignKey(PosOrder, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey("inventory.Product", on_delete=models.PROTECT, related_name="pos_order_items")
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    notes = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.order_id}: {self.product_id} x {self.quantity}"
