"""WSGI entry point for the Invo backend."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "invo_backend.settings")

application = get_wsgi_application()
