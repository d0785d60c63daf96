# receipts/apps.py
"""Receipts app configuration."""

from django.apps import AppConfig


class ReceiptsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "receipts"
    verbose_name = "Receipts"
