"""Per-invocation logging context.

Every trigger runs its reconcile pass under a fresh correlation ID, so the
log lines written by the handler, the controller and the engine for one pass
can be grouped together.
"""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "ocm_agent_correlation_id", default=None
)
_reconcile_target: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "ocm_agent_reconcile_target", default=None
)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def get_reconcile_target() -> str | None:
    """The ``namespace/name`` of the OcmAgent being reconciled, if any."""
    return _reconcile_target.get()


@contextmanager
def with_correlation_id(corr_id: str | None = None, target: str | None = None) -> Iterator[str]:
    """Run a block under a correlation ID, generated when omitted.

    Args:
        corr_id: Correlation ID to use
        target: ``namespace/name`` of the OcmAgent the block works on

    Yields:
        The correlation ID
    """
    corr_id = corr_id or uuid.uuid4().hex[:16]
    id_token = _correlation_id.set(corr_id)
    target_token = _reconcile_target.set(target)
    try:
        yield corr_id
    finally:
        _reconcile_target.reset(target_token)
        _correlation_id.reset(id_token)


def log_context(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    """Context fields for a structured log line, followed by ``extra``."""
    fields: dict[str, Any] = {}
    corr_id = _correlation_id.get()
    if corr_id:
        fields["correlation_id"] = corr_id
    target = _reconcile_target.get()
    if target:
        fields["ocmagent"] = target
    if extra:
        fields.update(extra)
    return fields
