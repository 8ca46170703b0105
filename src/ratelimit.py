"""Client-side throttling for Kubernetes API calls made by the builders.

Follows the QPS/burst model of the Kubernetes clients: a token bucket refilled
at ``qps`` tokens per second holding at most ``burst`` tokens, plus a cap on
the number of requests in flight.
"""

import logging
import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

from metrics import RATE_LIMIT_WAIT_SECONDS

logger = logging.getLogger(__name__)


class RateLimiter:
    """Token bucket with a concurrency cap, shared by every accessor call.

    A caller that finds the bucket empty reserves a future token and sleeps
    outside the lock until it is due, so waiting callers are served in
    arrival order.
    """

    def __init__(self, max_concurrent: int = 10, qps: float = 20.0, burst: int = 1) -> None:
        """Initialize the limiter.

        Args:
            max_concurrent: Maximum number of requests in flight
            qps: Sustained requests per second; 0 disables throttling
            burst: Requests allowed back to back before throttling starts
        """
        self.max_concurrent = max_concurrent
        self.qps = qps
        self.burst = max(burst, 1)

        self._in_flight = threading.BoundedSemaphore(max_concurrent)
        self._bucket_lock = threading.Lock()
        self._tokens = float(self.burst)
        self._refilled_at = time.monotonic()

        logger.info(
            "Kubernetes client throttling: max_concurrent=%d qps=%.1f burst=%d",
            max_concurrent,
            qps,
            self.burst,
        )

    @classmethod
    def from_env(cls) -> "RateLimiter":
        """Build a limiter from KUBE_MAX_CONCURRENT_CALLS, KUBE_QPS and KUBE_BURST."""
        return cls(
            max_concurrent=int(os.environ.get("KUBE_MAX_CONCURRENT_CALLS", "10")),
            qps=float(os.environ.get("KUBE_QPS", "20")),
            burst=int(os.environ.get("KUBE_BURST", "1")),
        )

    def _reserve(self) -> float:
        """Take one token and return how long to wait before it may be used."""
        if self.qps <= 0:
            return 0.0

        with self._bucket_lock:
            now = time.monotonic()
            refill = (now - self._refilled_at) * self.qps
            self._tokens = min(float(self.burst), self._tokens + refill) - 1
            self._refilled_at = now
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self.qps

    @contextmanager
    def acquire(self) -> Iterator[None]:
        """Hold a slot for the duration of one API call.

        Usage:
            with limiter.acquire():
                api.get_namespaced_custom_object(...)
        """
        started = time.monotonic()
        with self._in_flight:
            delay = self._reserve()
            if delay > 0:
                time.sleep(delay)

            waited = time.monotonic() - started
            if waited > 0.001:
                RATE_LIMIT_WAIT_SECONDS.observe(waited)

            yield

    def __repr__(self) -> str:
        return (
            f"RateLimiter(max_concurrent={self.max_concurrent}, "
            f"qps={self.qps}, burst={self.burst})"
        )


_rate_limiter: RateLimiter | None = None
_rate_limiter_lock = threading.Lock()


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide limiter, creating it from the environment once."""
    global _rate_limiter

    with _rate_limiter_lock:
        if _rate_limiter is None:
            _rate_limiter = RateLimiter.from_env()
        return _rate_limiter
