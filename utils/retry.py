import logging
import time

logger = logging.getLogger(__name__)


def call_with_retries(fn, attempts: int = 3, backoff_seconds: float = 0.5, retry_on=(Exception,), label: str = "call"):
    """
    Calls fn() up to `attempts` times, sleeping backoff * 2**n between tries.
    The last exception is re-raised.
    """
    attempts = max(1, int(attempts or 1))
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except retry_on as exc:
            if attempt == attempts:
                raise
            delay = backoff_seconds * (2 ** (attempt - 1))
            logger.warning("%s failed (attempt %s/%s): %s; retrying in %.2fs", label, attempt, attempts, exc, delay)
            if delay > 0:
                time.sleep(delay)
