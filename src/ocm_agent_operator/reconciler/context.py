"""Context objects threaded through every reconcile operation."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field

from ..config import OperatorConfig
from ..services.store.base import ObjectStore
from ..utils.errors import ReconcileCancelled


@dataclass
class OperatorContext:
    """Process-wide collaborators, built once at startup."""

    store: ObjectStore
    config: OperatorConfig
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("ocm_agent_operator"))
    stop_event: threading.Event = field(default_factory=threading.Event)

    def for_request(self, timeout: float | None = None) -> "ReconcileContext":
        """Create the context for one reconcile invocation.

        Args:
            timeout: Seconds the invocation may take; defaults to the
                configured reconcile timeout
        """
        timeout = self.config.reconcile_timeout if timeout is None else timeout
        return ReconcileContext(
            store=self.store,
            config=self.config,
            logger=self.logger,
            deadline=time.monotonic() + timeout,
            stop_event=self.stop_event,
        )


@dataclass
class ReconcileContext:
    """Per-invocation context: store client, settings and cancellation."""

    store: ObjectStore
    config: OperatorConfig
    logger: logging.Logger
    deadline: float | None = None
    stop_event: threading.Event | None = None

    @property
    def agent_namespace(self) -> str:
        return self.config.agent_namespace

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def check(self) -> None:
        """Raise ``ReconcileCancelled`` if the invocation must stop now."""
        if self.stop_event is not None and self.stop_event.is_set():
            raise ReconcileCancelled("operator is shutting down")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise ReconcileCancelled("reconcile deadline exceeded")

    def request_timeout(self) -> float:
        """Timeout for the next store call, bounded by the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return self.config.k8s_request_timeout
        return max(0.001, min(self.config.k8s_request_timeout, remaining))
