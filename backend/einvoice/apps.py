# einvoice/apps.py
"""E-invoice app configuration."""

from django.apps import AppConfig


class EinvoiceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "einvoice"
    verbose_name = "E-Invoice"
