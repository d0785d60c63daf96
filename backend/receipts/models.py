# receipts/models.py

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from accounts.models import Company

WALK_IN_CUSTOMER = "Walk-in Customer"


class Receipt(models.Model):
    class PaymentMethod(models.TextChoices):
        CASH = "CASH", "Cash"
        CARD = "CARD", "Card"
        BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"
        EWALLET = "EWALLET", "E-wallet"
        QR = "QR", "DuitNow QR"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="receipts")
    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)

    receipt_number = models.CharField(max_length=30)
    customer = models.ForeignKey(
        "customers.Customer",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="receipts",
    )
    customer_name = models.CharField(max_length=255, default=WALK_IN_CUSTOMER)
    customer_phone = models.CharField(max_length=20, blank=True, default="")
    receipt_date = models.DateTimeField(default=timezone.now)
    payment_method = models.CharField(max_length=15, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    notes = models.TextField(blank=True, default="")
    invoice = models.ForeignKey(
        "invoicing.Invoice",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="receipts",
    )

    created_by = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-receipt_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "receipt_number"],
                name="uniq_receipt_number_per_company",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "receipt_date"]),
        ]

    def __str__(self):
        return self.receipt_number


class ReceiptItem(models.Model):
    receipt = models.ForeignKey(Receipt, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "inventory.Product",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="receipt_items",
    )
    description = models.CharField(max_length=500, blank=True, default="")
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["id"]

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price

    def __str__(self):
        return f"{self.receipt_id}: {self.description or self.product_id} x {self.quantity}"
