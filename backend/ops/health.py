"""
Health check endpoints for operations monitoring.

Endpoints:
- /_health/live    - liveness probe (is the process running?)
- /_health/ready   - readiness probe (can we reach the database?)
- /_health/full    - database, cache and broker report for dashboards
"""
import logging
import time
import uuid
from typing import Dict, Any

import redis
from django.conf import settings
from django.core.cache import cache
from django.db import connections
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.time() - start) * 1000, 2)


class HealthCheck:
    """Health check implementation."""

    @staticmethod
    def check_database(alias: str = "default") -> Dict[str, Any]:
        """Run SELECT 1 on a configured database."""
        start = time.time()
        try:
            conn = connections[alias]
            conn.ensure_connection()
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            return {"status": "healthy", "alias": alias, "duration_ms": _elapsed_ms(start)}
        except Exception as e:
            logger.warning("Database health check failed", extra={"alias": alias, "error": str(e)})
            return {
                "status": "unhealthy",
                "alias": alias,
                "error": str(e),
                "duration_ms": _elapsed_ms(start),
            }

    @staticmethod
    def check_cache() -> Dict[str, Any]:
        """Write and read back a throwaway key."""
        start = time.time()
        key = f"health:{uuid.uuid4().hex}"
        try:
            cache.set(key, "ok", 5)
            value = cache.get(key)
            cache.delete(key)
            if value != "ok":
                return {"status": "unhealthy", "error": "cache round trip failed"}
            return {"status": "healthy", "duration_ms": _elapsed_ms(start)}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e), "duration_ms": _elapsed_ms(start)}

    @staticmethod
    def check_broker() -> Dict[str, Any]:
        """Ping the Celery broker."""
        broker_url = getattr(settings, "CELERY_BROKER_URL", None)
        if not broker_url or not broker_url.startswith("redis"):
            return {"status": "skipped", "reason": "Redis broker not configured"}

        start = time.time()
        try:
            client = redis.from_url(broker_url, socket_connect_timeout=2)
            client.ping()
            return {"status": "healthy", "duration_ms": _elapsed_ms(start)}
        except redis.RedisError as e:
            return {"status": "unhealthy", "error": str(e), "duration_ms": _elapsed_ms(start)}

    @staticmethod
    def get_full_health() -> Dict[str, Any]:
        """Get comprehensive health report."""
        checks = {
            "database": HealthCheck.check_database("default"),
            "cache": HealthCheck.check_cache(),
            "broker": HealthCheck.check_broker(),
        }

        statuses = [c.get("status", "unknown") for c in checks.values()]
        if all(s in ("healthy", "skipped") for s in statuses):
            overall = "healthy"
        elif checks["database"]["status"] != "healthy":
            overall = "unhealthy"
        else:
            overall = "degraded"

        return {
            "status": overall,
            "checks": checks,
            "version": getattr(settings, "VERSION", "unknown"),
            "environment": getattr(settings, "APP_ENV", "development"),
        }


class LivenessView(View):
    """Returns 200 while the process is up. Never touches dependencies."""

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """
    Readiness probe.

    Returns 503 when the default database cannot be reached.
    """

    def get(self, request):
        db_check = HealthCheck.check_database("default")

        if db_check["status"] == "healthy":
            return JsonResponse({"status": "ready", "database": db_check})
        return JsonResponse({"status": "not_ready", "database": db_check}, status=503)


class FullHealthView(View):
    """
    Full health check for debugging and dashboards.

    Should be protected in production (internal network only).
    """

    def get(self, request):
        health = HealthCheck.get_full_health()

        status_code = 200 if health["status"] == "healthy" else 503
        return JsonResponse(health, status=status_code)
