"""Status conditions of OcmAgent resources.

Every helper returns a new list and leaves its input untouched, so callers
can compare the result with the observed status to decide whether a status
write is needed at all.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_READY,
    COND_REASON_NOT_READY,
    COND_REASON_READY,
    COND_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_FAILED,
)

Conditions = list[dict[str, Any]]


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def find_condition(conditions: Conditions, condition_type: str) -> dict[str, Any] | None:
    return next((c for c in conditions if c.get("type") == condition_type), None)


def update_condition(
    conditions: Conditions,
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> Conditions:
    """Set ``condition_type``, appending it when absent.

    ``lastTransitionTime`` only moves when ``status`` differs from the
    current status of the condition.
    """
    existing = find_condition(conditions, condition_type)
    condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": _now(),
    }
    if existing is not None and existing.get("status") == status and existing.get("lastTransitionTime"):
        condition["lastTransitionTime"] = existing["lastTransitionTime"]
    if observed_generation is not None:
        condition["observedGeneration"] = observed_generation

    if existing is None:
        return copy.deepcopy(conditions) + [condition]
    return [condition if c is existing else copy.deepcopy(c) for c in conditions]


def remove_condition(conditions: Conditions, condition_type: str) -> Conditions:
    return [copy.deepcopy(c) for c in conditions if c.get("type") != condition_type]


def set_ready_condition(
    conditions: Conditions,
    ready: bool,
    message: str,
    observed_generation: int | None = None,
) -> Conditions:
    if ready:
        return update_condition(conditions, COND_READY, "True", COND_REASON_READY, message, observed_generation)
    return update_condition(conditions, COND_READY, "False", COND_REASON_NOT_READY, message, observed_generation)


def set_reconcile_failed_condition(
    conditions: Conditions,
    message: str,
    observed_generation: int | None = None,
) -> Conditions:
    return update_condition(
        conditions, COND_RECONCILE_FAILED, "True", EVENT_REASON_RECONCILE_FAILED, message, observed_generation
    )


def is_condition_true(conditions: Conditions, condition_type: str) -> bool:
    condition = find_condition(conditions, condition_type)
    return condition is not None and condition.get("status") == "True"
