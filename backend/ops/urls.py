"""
Health check and metrics routes, mounted outside /api/ so no authentication,
throttling or tenant resolution applies.

    /_health/live, /_health/ready, /_health/full  -> urlpatterns
    /_metrics/                                     -> metrics_patterns
"""
from django.urls import path

from ops import health
from ops.metrics import MetricsView

urlpatterns = [
    path("live", health.LivenessView.as_view(), name="health-live"),
    path("ready", health.ReadinessView.as_view(), name="health-ready"),
    path("full", health.FullHealthView.as_view(), name="health-full"),
]

metrics_patterns = [
    path("", MetricsView.as_view(), name="metrics"),
]
