"""
Prometheus metrics endpoint.

Metrics exposed:
- invo_request_duration_seconds: HTTP request duration histogram
- invo_active_requests: Requests currently being processed
- invo_invoice_transitions_total: Invoice lifecycle transitions by action
- invo_stripe_webhooks_total: Stripe webhook events by type and outcome
- invo_einvoice_documents_total: Prepared e-invoice documents by status
- invo_documents_created_total: Receipts and POS orders created, by type
"""
import logging
import re
import time

from django.http import HttpResponse
from django.views import View
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

logger = logging.getLogger(__name__)

REQUEST_DURATION = Histogram(
    "invo_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

ACTIVE_REQUESTS = Gauge(
    "invo_active_requests",
    "Number of requests currently being processed",
)

INVOICE_TRANSITIONS = Counter(
    "invo_invoice_transitions_total",
    "Invoice lifecycle transitions",
    ["action"],
)

STRIPE_WEBHOOKS = Counter(
    "invo_stripe_webhooks_total",
    "Stripe webhook events received",
    ["event_type", "outcome"],
)

EINVOICE_DOCUMENTS = Counter(
    "invo_einvoice_documents_total",
    "E-invoice documents prepared",
    ["status"],
)

DOCUMENTS_CREATED = Counter(
    "invo_documents_created_total",
    "Documents created",
    ["document_type"],
)

_ID_RE = re.compile(r"/\d+(?=/|$)")
_UUID_RE = re.compile(r"/[0-9a-f-]{36}(?=/|$)")


def normalize_endpoint(path: str) -> str:
    """Collapse ids in a path so label cardinality stays bounded."""
    path = _UUID_RE.sub("/{uuid}", path)
    path = _ID_RE.sub("/{id}", path)
    return path[:60]


class MetricsView(View):
    """
    Prometheus metrics endpoint.

    Should be protected in production (internal network only).
    """

    def get(self, request):
        return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)


def track_request_metrics(get_response):
    """
    Middleware to track request duration metrics.

    Add to MIDDLEWARE after SecurityMiddleware:
        "ops.metrics.track_request_metrics",
    """

    def middleware(request):
        start = time.time()
        status_code = 500
        ACTIVE_REQUESTS.inc()
        try:
            response = get_response(request)
            status_code = response.status_code
            return response
        finally:
            ACTIVE_REQUESTS.dec()
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=normalize_endpoint(request.path),
                status=f"{status_code // 100}xx",
            ).observe(time.time() - start)

    return middleware
