from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

from ops.urls import metrics_patterns

urlpatterns = [
    # Operations endpoints (no auth required)
    path("_health/", include("ops.urls")),
    path("_metrics/", include(metrics_patterns)),

    # Admin and API
    path("admin/", admin.site.urls),
    path("api/", include("accounts.urls")),
    path("api/", include("customers.urls")),
    path("api/", include("inventory.urls")),
    path("api/", include("invoicing.urls")),
    path("api/", include("einvoice.urls")),
    path("api/", include("receipts.urls")),
    path("api/", include("pos.urls")),
    path("api/", include("billing.urls")),
    path("api/", include("dashboard.urls")),
    path("api/", include("messaging.urls")),
    path("api/accounting/", include("accounting.urls")),
    path("api-auth/", include("rest_framework.urls")),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
