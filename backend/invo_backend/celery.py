"""
Celery application configuration.

This is the main Celery app for the Invo backend.
It runs scheduled maintenance (overdue invoices, trial expiry)
and background jobs.

Usage:
    # Start worker
    celery -A invo_backend worker -l INFO

    # Start beat scheduler (for periodic tasks)
    celery -A invo_backend beat -l INFO

    # Start both (development only)
    celery -A invo_backend worker -B -l INFO
"""
import os

from celery import Celery

# Set default Django settings
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "invo_backend.settings")

# Create Celery app
app = Celery("invo_backend")

# Load config from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()


@app.task(bind=True, ignore_result=True)
def debug_task(self):
    """Debug task for testing Celery connectivity."""
    print(f"Request: {self.request!r}")
