"""Error types and sanitization utilities for the OCM Agent Operator."""

from __future__ import annotations

import re
from typing import Any


class OperatorError(Exception):
    """Base class for all errors raised by the operator."""


class StoreError(OperatorError):
    """An object store call failed.

    Args:
        message: Human readable description
        status: HTTP status reported by the API server, if any
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFoundError(StoreError):
    """The requested object does not exist."""


class AlreadyExistsError(StoreError):
    """An object with the same kind, namespace and name already exists."""


class ConflictError(StoreError):
    """A write was rejected because the object was modified concurrently."""


class BuildError(OperatorError):
    """The desired state of a managed resource could not be built."""


class TypeMismatchError(OperatorError):
    """A resource manager was handed an object of a kind it does not manage."""


class ReconcileCancelled(OperatorError):
    """The reconcile deadline passed or the operator is shutting down."""


REDACTED = "[REDACTED]"

# Each pattern captures the text to keep, followed by the secret value it precedes
_SECRET_VALUE_PATTERNS = [
    re.compile(r"(access[_\s]?token[:=\s]+)[A-Za-z0-9/+=.\-_]+", re.IGNORECASE),
    re.compile(r"(\"auth\"\s*:\s*\")[^\"]+", re.IGNORECASE),
    re.compile(r"(bearer\s+)[A-Za-z0-9/+=.\-_]+", re.IGNORECASE),
]

# Keys whose values are never logged, compared case-insensitively
SENSITIVE_FIELDS = frozenset({
    "access_token",
    "auth",
    "credentials",
    "password",
    "secret",
    "token",
    ".dockerconfigjson",
})


def sanitize_error_message(message: str) -> str:
    """Redact tokens and docker auth values embedded in ``message``."""
    for pattern in _SECRET_VALUE_PATTERNS:
        message = pattern.sub(rf"\1{REDACTED}", message)
    return message


def sanitize_exception(error: BaseException) -> str:
    return sanitize_error_message(str(error))


def _sanitize_value(value: Any, sensitive_keys: frozenset[str]) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in sensitive_keys else _sanitize_value(item, sensitive_keys)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(item, sensitive_keys) for item in value]
    if isinstance(value, str):
        return sanitize_error_message(value)
    return value


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Return a copy of ``data`` that is safe to log.

    Values under sensitive keys (``SENSITIVE_FIELDS`` plus ``sensitive_keys``)
    are replaced, at any depth, including inside lists; strings elsewhere
    have embedded tokens redacted.
    """
    keys = SENSITIVE_FIELDS | frozenset(k.lower() for k in sensitive_keys or ())
    return _sanitize_value(data, keys)
