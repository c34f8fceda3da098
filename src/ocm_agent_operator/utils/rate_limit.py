"""Client-side rate limiting for Kubernetes API calls."""

from __future__ import annotations

import threading
import time

from .. import metrics
from .errors import ReconcileCancelled


class RateLimiter:
    """Spaces calls at least ``1 / per_second`` seconds apart.

    Shared by all worker threads of the operator. The lock only guards slot
    reservation; callers wait for their slot without holding it.
    """

    def __init__(self, per_second: float, api_type: str = "k8s"):
        self.min_interval = 1.0 / per_second
        self.api_type = api_type
        self._next_slot = 0.0
        self._lock = threading.Lock()

    def acquire(self, timeout: float | None = None) -> None:
        """Block until the next call is allowed.

        Args:
            timeout: Longest acceptable wait in seconds, None for no limit

        Raises:
            ReconcileCancelled: If the next free slot is further away than
                ``timeout``; no slot is reserved in that case
        """
        with self._lock:
            now = time.monotonic()
            slot = max(now, self._next_slot)
            wait = slot - now
            if timeout is not None and wait > timeout:
                raise ReconcileCancelled(
                    f"rate limit wait of {wait:.3f}s exceeds the remaining {max(timeout, 0.0):.3f}s"
                )
            self._next_slot = slot + self.min_interval

        if wait > 0:
            metrics.rate_limit_hits_total.labels(api_type=self.api_type).inc()
            time.sleep(wait)
