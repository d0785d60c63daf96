"""
Retry helper for transient database failures.

Connection drops and lock timeouts surface as OperationalError. The
helper retries the callable with a linear backoff (attempt × backoff)
and re-raises the last error once the attempts are used up.
"""
import functools
import logging
import time

from django.conf import settings
from django.db import OperationalError, close_old_connections

logger = logging.getLogger(__name__)


def retry_on_db_error(func=None, *, attempts: int = None, backoff_ms: int = None):
    """
    Decorator (or wrapper) retrying ``func`` on OperationalError.

    Defaults come from DB_RETRY_ATTEMPTS / DB_RETRY_BACKOFF_MS.
    Must wrap the whole transaction, never a call inside one.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or getattr(settings, "DB_RETRY_ATTEMPTS", 5)
            delay_ms = backoff_ms if backoff_ms is not None else getattr(settings, "DB_RETRY_BACKOFF_MS", 500)

            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except OperationalError as e:
                    if attempt == max_attempts:
                        logger.error(
                            "Database operation failed after retries",
                            extra={"operation": fn.__name__, "attempts": attempt, "error": str(e)},
                        )
                        raise
                    logger.warning(
                        "Database operation failed, retrying",
                        extra={"operation": fn.__name__, "attempt": attempt, "error": str(e)},
                    )
                    close_old_connections()
                    time.sleep(delay_ms * attempt / 1000)

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
