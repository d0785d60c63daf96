"""
Tenant-aware cache helpers.

Cached reads are grouped under a tag per company ("customers",
"dashboard", ...). Each tag carries a version number stored in the
cache; invalidating a tag bumps the version so every key built from the
old version stops being read, whatever query parameters it was built
from. Old entries simply expire.

Usage:
    data = cached(company.id, "customers", compute, "q=abc", timeout=120)
    invalidate(company.id, "customers", "dashboard")
"""
import logging
from typing import Any, Callable

from django.core.cache import cache

logger = logging.getLogger(__name__)

CUSTOMERS = "customers"
PRODUCTS = "products"
INVOICES = "invoices"
RECEIPTS = "receipts"
DASHBOARD = "dashboard"


def _version_key(company_id: int, tag: str) -> str:
    return f"invo:{company_id}:{tag}:version"


def tag_version(company_id: int, tag: str) -> int:
    return cache.get_or_set(_version_key(company_id, tag), 1, None)


def cache_key(company_id: int, tag: str, *parts) -> str:
    """Build a key scoped to the company and the tag's current version."""
    version = tag_version(company_id, tag)
    suffix = ":".join(str(p) for p in parts)
    return f"invo:{company_id}:{tag}:v{version}:{suffix}"


def cached(company_id: int, tag: str, compute: Callable[[], Any], *parts, timeout: int = 300) -> Any:
    key = cache_key(company_id, tag, *parts)
    value = cache.get(key)
    if value is None:
        value = compute()
        cache.set(key, value, timeout)
    return value


def invalidate(company_id: int, *tags: str) -> None:
    for tag in tags:
        key = _version_key(company_id, tag)
        try:
            cache.incr(key)
        except ValueError:
            # Version key expired or was never set.
            cache.set(key, 2, None)
        logger.debug("Cache tag invalidated", extra={"company_id": company_id, "tag": tag})
