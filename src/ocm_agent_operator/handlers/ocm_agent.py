"""Kopf handlers that trigger OcmAgent reconciliation."""

from __future__ import annotations

import os
from typing import Any

import kopf

from ..constants import API_GROUP, API_GROUP_VERSION, KIND_OCM_AGENT, PLURAL_OCM_AGENTS
from ..utils.context import with_correlation_id
from ..utils.errors import OperatorError, sanitize_exception
from ..utils.events import emit_reconcile_started
from .base import BaseHandler

# Watch event types that can change the desired or observed state.
# The initial listing is delivered with a type of None.
ACTIONABLE_EVENT_TYPES = frozenset({None, "ADDED", "MODIFIED", "DELETED"})

# Owned kinds whose changes re-trigger the owning OcmAgent
OWNED_RESOURCES = (
    ("v1", "configmaps"),
    ("v1", "services"),
    ("v1", "secrets"),
    ("apps/v1", "deployments"),
)


def is_actionable_event(event_type: str | None) -> bool:
    """Return True if a watch event of this type should trigger a reconcile."""
    return event_type in ACTIONABLE_EVENT_TYPES


def controller_owner(body: kopf.Body | dict[str, Any]) -> dict[str, Any] | None:
    """Return the OcmAgent controller owner reference of an object, if any."""
    for ref in body.get("metadata", {}).get("ownerReferences") or []:
        if not ref.get("controller"):
            continue
        group = ref.get("apiVersion", "").split("/", 1)[0]
        if ref.get("kind") == KIND_OCM_AGENT and group == API_GROUP:
            return ref
    return None


def is_owned_by_ocm_agent(body: kopf.Body, **_: Any) -> bool:
    """Kopf ``when=`` filter for owned-kind watches."""
    return controller_owner(body) is not None


class OcmAgentHandler(BaseHandler):
    """Runs the controller for one trigger, under its own correlation id."""

    def __init__(self):
        super().__init__(KIND_OCM_AGENT)

    def reconcile(self, memo: Any, namespace: str, name: str, trigger: str, retry: bool = False) -> None:
        """Reconcile ``namespace/name`` with the operator wired into ``memo``.

        Kopf never retries ``on.event`` handlers, so a failed pass is only
        raised when ``retry`` is set by a trigger kopf does retry (the drift
        timer and the deletion handler). Otherwise the failure is logged and
        the next timer tick picks the agent up again.

        Raises:
            kopf.TemporaryError: If the pass failed and ``retry`` is set
        """
        meta = {"name": name, "namespace": namespace}
        with with_correlation_id(target=f"{namespace}/{name}"):
            ctx = memo.operator.for_request()
            self.log_info(meta, f"Reconciling OcmAgent ({trigger})", event="reconcile", reason="Triggered", trigger=trigger)
            try:
                self.reconcile_with_metrics(meta, lambda: memo.controller.reconcile(ctx, namespace, name))
            except OperatorError as e:
                if retry:
                    raise kopf.TemporaryError(sanitize_exception(e), delay=ctx.config.drift_check_interval / 10) from e
                self.log_warning(
                    meta,
                    f"Reconcile failed, waiting for the drift timer: {sanitize_exception(e)}",
                    event="reconcile",
                    reason="RetryDeferred",
                    trigger=trigger,
                )


# Global handler instance
_handler = OcmAgentHandler()


@kopf.on.event(API_GROUP_VERSION, PLURAL_OCM_AGENTS)
def handle_ocm_agent_event(
    event: dict[str, Any],
    body: kopf.Body,
    meta: kopf.Meta,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Reconcile an OcmAgent when it is listed, added, modified or deleted."""
    if not is_actionable_event(event.get("type")):
        return
    if event.get("type") != "DELETED":
        emit_reconcile_started(body)
    _handler.reconcile(memo, meta.get("namespace"), meta.get("name"), trigger=f"event:{event.get('type')}")


def _owned_event_handler(event: dict[str, Any], body: kopf.Body, meta: kopf.Meta, memo: kopf.Memo, **kwargs: Any) -> None:
    """Reconcile the OcmAgent owning a managed object that changed."""
    if not is_actionable_event(event.get("type")):
        return
    owner = controller_owner(body)
    if owner is None:
        return
    _handler.reconcile(
        memo,
        meta.get("namespace"),
        owner["name"],
        trigger=f"owned:{body.get('kind', 'unknown')}:{event.get('type')}",
    )


for _api_version, _plural in OWNED_RESOURCES:
    kopf.on.event(_api_version, _plural, id=f"owned-{_plural}", when=is_owned_by_ocm_agent)(_owned_event_handler)


@kopf.timer(API_GROUP_VERSION, PLURAL_OCM_AGENTS, interval=float(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300")))
def check_ocm_agent_drift(meta: kopf.Meta, memo: kopf.Memo, **kwargs: Any) -> None:
    """Periodically reconcile to repair drift and retry failed passes."""
    _handler.reconcile(memo, meta.get("namespace"), meta.get("name"), trigger="timer", retry=True)


@kopf.on.delete(API_GROUP_VERSION, PLURAL_OCM_AGENTS, optional=True)
def handle_ocm_agent_delete(meta: kopf.Meta, memo: kopf.Memo, **kwargs: Any) -> None:
    """Retry the deletion pass until the finalizer has been released."""
    _handler.reconcile(memo, meta.get("namespace"), meta.get("name"), trigger="delete", retry=True)
