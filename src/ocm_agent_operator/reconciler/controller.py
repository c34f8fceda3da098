"""Lifecycle controller for OcmAgent resources."""

from __future__ import annotations

import logging
from typing import Any

from .. import metrics
from ..constants import COND_RECONCILE_FAILED, FINALIZER, KIND_OCM_AGENT
from ..logging import log_resource_event
from ..resources.models import OcmAgent
from ..tracing import trace_span
from ..utils.conditions import remove_condition, set_ready_condition, set_reconcile_failed_condition
from ..utils.errors import NotFoundError, sanitize_exception
from ..utils.events import emit_reconcile_failed, emit_resources_reconciled, emit_resources_removed
from .context import ReconcileContext
from .engine import ResourceReconciler


class OcmAgentController:
    """Runs one reconcile pass for an OcmAgent identified by namespace and name.

    The finalizer on the OcmAgent is present exactly while managed resources
    may exist: it is added after a successful "ensure present" pass and
    removed only after a successful "ensure absent" pass. A failed pass never
    touches it.
    """

    def __init__(self, reconciler: ResourceReconciler):
        self.reconciler = reconciler

    def reconcile(self, ctx: ReconcileContext, namespace: str, name: str) -> None:
        """Reconcile the OcmAgent ``namespace/name``.

        Raises:
            OperatorError: Any failure of the pass; the caller retries later
        """
        with trace_span("reconcile_ocm_agent", kind=KIND_OCM_AGENT, attributes={"ocmagent.name": name}):
            try:
                agent = ctx.store.get_parent(ctx, namespace, name)
            except NotFoundError:
                # Owned objects are garbage collected by the platform
                metrics.resource_absent.set(1)
                ctx.logger.info(f"OcmAgent {namespace}/{name} not found, nothing to reconcile")
                return
            metrics.resource_absent.set(0)

            if agent.deletion_requested:
                self._reconcile_deletion(ctx, agent)
            else:
                self._reconcile_presence(ctx, agent)

    def _reconcile_presence(self, ctx: ReconcileContext, agent: OcmAgent) -> None:
        self._log(ctx, agent, "Ensuring OCM Agent resources exist", event="reconcile", reason="Reconciling")
        try:
            written = self.reconciler.ensure_present(ctx, agent)
        except Exception as e:
            self._report_failure(ctx, agent, "Failed to create OCM Agent resources", e)
            self._record_failure_status(ctx, agent, e)
            raise

        if FINALIZER not in agent.finalizers:
            agent.finalizers.append(FINALIZER)
            try:
                agent = ctx.store.update_parent(ctx, agent)
            except Exception as e:
                self._report_failure(ctx, agent, "Failed to apply finalizer to OcmAgent", e)
                raise
            written = True

        status_written = self._write_status(ctx, agent, self._ready_status(agent))
        self._log(ctx, agent, "Successfully set up OCM Agent resources", event="reconciled", reason="Reconciled")
        # Converged periodic passes post no event
        if written or status_written:
            emit_resources_reconciled(agent.to_dict())

    def _reconcile_deletion(self, ctx: ReconcileContext, agent: OcmAgent) -> None:
        if FINALIZER not in agent.finalizers:
            # No pass ever completed; owner references let the platform collect leftovers
            self._log(
                ctx, agent, "OcmAgent was never fully reconciled, nothing to remove", event="deletion", reason="Skipped"
            )
            return
        self._log(ctx, agent, "Ensuring OCM Agent resources are absent", event="deletion", reason="Deletion")
        try:
            self.reconciler.ensure_absent(ctx, agent)
        except Exception as e:
            self._report_failure(ctx, agent, "Failed to remove OCM Agent resources", e)
            raise

        agent.finalizers.remove(FINALIZER)
        try:
            agent = ctx.store.update_parent(ctx, agent)
        except Exception as e:
            self._report_failure(ctx, agent, "Failed to remove finalizer from OcmAgent", e)
            raise

        self._log(ctx, agent, "Successfully removed OCM Agent resources", event="deleted", reason="Removed")
        emit_resources_removed(agent.to_dict())

    def _ready_status(self, agent: OcmAgent) -> dict[str, Any]:
        conditions = remove_condition(agent.status.get("conditions", []), COND_RECONCILE_FAILED)
        conditions = set_ready_condition(
            conditions, True, "OCM Agent resources are in sync", observed_generation=agent.generation
        )
        return {"conditions": conditions, "observedGeneration": agent.generation}

    def _record_failure_status(self, ctx: ReconcileContext, agent: OcmAgent, error: Exception) -> None:
        message = f"Reconciliation failed: {sanitize_exception(error)}"
        conditions = set_ready_condition(
            agent.status.get("conditions", []), False, message, observed_generation=agent.generation
        )
        conditions = set_reconcile_failed_condition(conditions, message, observed_generation=agent.generation)
        try:
            self._write_status(ctx, agent, {"conditions": conditions})
        except Exception as status_error:
            # The reconcile error is the one raised to the caller
            self._log(
                ctx,
                agent,
                f"Failed to record failure in status: {sanitize_exception(status_error)}",
                event="warning",
                reason="StatusUpdateFailed",
                level=logging.WARNING,
            )

    def _write_status(self, ctx: ReconcileContext, agent: OcmAgent, status: dict[str, Any]) -> bool:
        if all(agent.status.get(key) == value for key, value in status.items()):
            return False
        ctx.store.patch_parent_status(ctx, agent, status)
        agent.status.update(status)
        return True

    def _report_failure(self, ctx: ReconcileContext, agent: OcmAgent, message: str, error: Exception) -> None:
        sanitized = sanitize_exception(error)
        self._log(
            ctx,
            agent,
            f"{message}. Will retry on next reconcile.",
            event="error",
            reason="ReconcileFailed",
            level=logging.ERROR,
            error=sanitized,
            error_type=type(error).__name__,
        )
        metrics.error_total.labels(kind=KIND_OCM_AGENT, error_type=type(error).__name__).inc()
        emit_reconcile_failed(agent.to_dict(), f"{message}: {sanitized}")

    def _log(
        self,
        ctx: ReconcileContext,
        agent: OcmAgent,
        message: str,
        event: str,
        reason: str,
        level: int = logging.INFO,
        **kwargs: Any,
    ) -> None:
        log_resource_event(
            ctx.logger,
            resource_kind=KIND_OCM_AGENT,
            resource_name=agent.name,
            namespace=agent.namespace,
            uid=agent.uid,
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )
