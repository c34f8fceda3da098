"""Utility functions for the OCM Agent Operator."""

from .conditions import (
    is_condition_true,
    remove_condition,
    set_ready_condition,
    set_reconcile_failed_condition,
    update_condition,
)
from .context import (
    get_correlation_id,
    get_reconcile_target,
    log_context,
    with_correlation_id,
)
from .errors import (
    AlreadyExistsError,
    BuildError,
    ConflictError,
    NotFoundError,
    OperatorError,
    ReconcileCancelled,
    StoreError,
    TypeMismatchError,
    sanitize_exception,
)
from .events import emit_event
from .rate_limit import RateLimiter
from .retry import RetryPolicy, retry_on_conflict
from .secrets import extract_registry_auth, get_secret_value

__all__ = [
    "update_condition",
    "remove_condition",
    "set_ready_condition",
    "set_reconcile_failed_condition",
    "is_condition_true",
    "emit_event",
    "get_secret_value",
    "extract_registry_auth",
    "RateLimiter",
    "RetryPolicy",
    "retry_on_conflict",
    "OperatorError",
    "StoreError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConflictError",
    "BuildError",
    "TypeMismatchError",
    "ReconcileCancelled",
    "sanitize_exception",
    "get_reconcile_target",
    "get_correlation_id",
    "with_correlation_id",
    "log_context",
]
