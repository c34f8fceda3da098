"""Logging and metrics plumbing shared by kopf trigger handlers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping

from .. import metrics
from ..logging import log_resource_event
from ..utils.errors import sanitize_exception


class BaseHandler:
    """Wraps trigger work for one resource kind in structured logs and reconcile metrics."""

    def __init__(self, kind: str):
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def resource_fields(meta: Mapping[str, Any]) -> tuple[str, str, str]:
        """Name, namespace and UID from object metadata, with placeholders for missing ones."""
        return (
            meta.get("name") or "unknown",
            meta.get("namespace") or "default",
            meta.get("uid") or "unknown",
        )

    def log(
        self,
        level: int,
        meta: Mapping[str, Any],
        message: str,
        event: str,
        reason: str,
        error: Exception | None = None,
        **fields: Any,
    ) -> None:
        """Write one structured log line; ``error`` is added sanitized, with its type."""
        name, namespace, uid = self.resource_fields(meta)
        if error is not None:
            fields["error"] = sanitize_exception(error)
            fields["error_type"] = type(error).__name__
        log_resource_event(
            self.logger, self.kind, name, namespace, uid, event, reason, message, level=level, **fields
        )

    def log_info(self, meta: Mapping[str, Any], message: str, event: str = "info", reason: str = "Info", **fields: Any) -> None:
        self.log(logging.INFO, meta, message, event, reason, **fields)

    def log_warning(
        self, meta: Mapping[str, Any], message: str, event: str = "warning", reason: str = "Warning", **fields: Any
    ) -> None:
        self.log(logging.WARNING, meta, message, event, reason, **fields)

    def log_error(
        self,
        meta: Mapping[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **fields: Any,
    ) -> None:
        self.log(logging.ERROR, meta, message, event, reason, error=error, **fields)

    def reconcile_with_metrics(self, meta: Mapping[str, Any], reconcile_fn: Callable[[], None]) -> None:
        """Run ``reconcile_fn``, counting its outcome and timing it.

        Failures are logged and re-raised unchanged.
        """
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()
        started = time.monotonic()
        result = "error"
        try:
            reconcile_fn()
            result = "success"
        except Exception as e:
            self.log_error(meta, "Reconciliation failed", error=e, reason="ReconcileFailed")
            raise
        finally:
            metrics.reconcile_total.labels(kind=self.kind, result=result).inc()
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(time.monotonic() - started)
