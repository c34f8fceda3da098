"""Kubernetes events posted on OcmAgent resources."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_RESOURCES_RECONCILED,
    EVENT_REASON_RESOURCES_REMOVED,
)

# Longer messages are rejected by the events API
MAX_EVENT_MESSAGE_LENGTH = 1024


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Post an event about ``body`` through kopf, truncating long messages."""
    if len(message) > MAX_EVENT_MESSAGE_LENGTH:
        message = message[: MAX_EVENT_MESSAGE_LENGTH - 3] + "..."
    kopf.event(body, type=type_, reason=reason, message=message)


def emit_reconcile_started(body: dict[str, Any]) -> None:
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_resources_reconciled(body: dict[str, Any]) -> None:
    """Posted once every managed resource is in its desired state."""
    emit_event(body, EVENT_REASON_RESOURCES_RECONCILED, "OCM Agent resources are in sync")


def emit_resources_removed(body: dict[str, Any]) -> None:
    """Posted once every managed resource has been removed."""
    emit_event(body, EVENT_REASON_RESOURCES_REMOVED, "OCM Agent resources removed")
