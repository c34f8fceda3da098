"""Optimistic-concurrency retry with bounded exponential backoff."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, TypeVar

from .errors import ConflictError

if TYPE_CHECKING:
    from ..config import OperatorConfig
    from ..reconciler.context import ReconcileContext

_R = TypeVar("_R")


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff used when a write is rejected with a conflict.

    The defaults mirror the Kubernetes client's default backoff: four
    attempts starting at 10ms, multiplied by five each time, with 10% jitter.
    """

    steps: int = 4
    initial_delay: float = 0.01
    factor: float = 5.0
    jitter: float = 0.1
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def from_config(cls, config: "OperatorConfig") -> "RetryPolicy":
        return cls(
            steps=config.conflict_retry_steps,
            initial_delay=config.conflict_retry_initial_delay,
            factor=config.conflict_retry_factor,
        )

    def delays(self) -> list[float]:
        """Delays slept between consecutive attempts (``steps - 1`` of them)."""
        delays = []
        delay = self.initial_delay
        for _ in range(self.steps - 1):
            delays.append(delay + delay * self.jitter * random.random())
            delay *= self.factor
        return delays


def retry_on_conflict(
    ctx: "ReconcileContext",
    policy: RetryPolicy,
    fn: Callable[[], _R],
    on_retry: Callable[[int, ConflictError], None] | None = None,
) -> _R:
    """Run ``fn`` until it succeeds, retrying only on ``ConflictError``.

    Args:
        ctx: Reconcile context; its deadline bounds the total wait
        policy: Backoff policy
        fn: The fetch-compare-write sequence to run
        on_retry: Called with the attempt number and error before each retry

    Returns:
        Whatever ``fn`` returns

    Raises:
        ConflictError: If every attempt conflicted
        ReconcileCancelled: If the deadline passes while backing off
    """
    delays = policy.delays()
    attempt = 0
    while True:
        attempt += 1
        ctx.check()
        try:
            return fn()
        except ConflictError as e:
            if attempt >= policy.steps:
                raise
            if on_retry is not None:
                on_retry(attempt, e)
            delay = delays[attempt - 1]
            remaining = ctx.remaining()
            if remaining is not None:
                delay = min(delay, max(remaining, 0.0))
            policy.sleep(delay)
