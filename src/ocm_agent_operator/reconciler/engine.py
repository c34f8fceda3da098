"""Drives every managed resource of an OcmAgent towards its desired state."""

from __future__ import annotations

import json
import logging

import kopf

from .. import metrics
from ..resources.base import ResourceManager
from ..resources.models import OcmAgent, StoreObject
from ..resources.registry import ResourceRegistry
from ..tracing import trace_span
from ..utils.errors import BuildError, ConflictError, NotFoundError
from ..utils.retry import RetryPolicy, retry_on_conflict
from .context import ReconcileContext


class ResourceReconciler:
    """Applies "ensure present" or "ensure absent" across a resource registry.

    Kinds are processed strictly one after another. The first failure stops
    the pass and is raised to the caller; kinds applied earlier in the pass
    stay applied; the next pass finds them already converged and moves on.
    """

    def __init__(self, registry: ResourceRegistry, retry_policy: RetryPolicy | None = None):
        self.registry = registry
        self.retry_policy = retry_policy or RetryPolicy()

    def ensure_present(self, ctx: ReconcileContext, agent: OcmAgent) -> bool:
        """Create or update every managed resource, in registration order.

        Returns:
            True if any object was created or updated
        """
        written = False
        for manager in self.registry:
            with trace_span("ensure_resource", kind=manager.kind, attributes={"ocmagent.name": agent.name}):
                written = self._ensure_resource(ctx, agent, manager) or written
        return written

    def ensure_absent(self, ctx: ReconcileContext, agent: OcmAgent) -> None:
        """Delete every managed resource, in reverse registration order."""
        for manager in reversed(self.registry):
            with trace_span("ensure_resource_removed", kind=manager.kind, attributes={"ocmagent.name": agent.name}):
                self._ensure_resource_removed(ctx, agent, manager)

    def _build(self, ctx: ReconcileContext, agent: OcmAgent, manager: ResourceManager) -> StoreObject:
        desired = manager.build(ctx, agent)
        if not desired.name:
            raise BuildError(f"object {desired.kind_key()} has no name")
        return desired

    def _ensure_resource(self, ctx: ReconcileContext, agent: OcmAgent, manager: ResourceManager) -> bool:
        desired = self._build(ctx, agent, manager)

        def apply() -> bool:
            try:
                observed = ctx.store.get(ctx, type(desired), desired.namespace, desired.name)
            except NotFoundError:
                self._create(ctx, agent, desired)
                return True

            diff = manager.changed(observed, desired)
            if not diff.changed:
                return False
            self._log(ctx, logging.INFO, "updating object due to differences detected", desired)
            self._write(ctx, "update", diff.merged)
            return True

        def on_retry(attempt: int, error: ConflictError) -> None:
            metrics.conflict_retries_total.labels(kind=manager.kind).inc()
            self._log(ctx, logging.INFO, f"write conflict, retrying (attempt {attempt}): {error}", desired)

        return retry_on_conflict(ctx, self.retry_policy, apply, on_retry=on_retry)

    def _create(self, ctx: ReconcileContext, agent: OcmAgent, desired: StoreObject) -> None:
        obj = desired.copy()
        body = obj.to_dict()
        kopf.append_owner_reference(body, owner=agent.to_dict())
        obj.owner_references = body["metadata"]["ownerReferences"]
        self._log(ctx, logging.INFO, "creating object which does not exist", obj)
        self._write(ctx, "create", obj)

    def _write(self, ctx: ReconcileContext, operation: str, obj: StoreObject) -> None:
        write = ctx.store.create if operation == "create" else ctx.store.update
        try:
            write(ctx, obj)
        except ConflictError:
            metrics.resource_operations_total.labels(kind=obj.KIND, operation=operation, result="conflict").inc()
            raise
        except Exception:
            metrics.resource_operations_total.labels(kind=obj.KIND, operation=operation, result="error").inc()
            raise
        metrics.resource_operations_total.labels(kind=obj.KIND, operation=operation, result="success").inc()

    def _ensure_resource_removed(self, ctx: ReconcileContext, agent: OcmAgent, manager: ResourceManager) -> None:
        desired = manager.identify(ctx, agent)
        if desired is None:
            ctx.logger.debug(f"{manager.kind}: no object named by the spec, nothing to delete")
            return

        try:
            observed = ctx.store.get(ctx, type(desired), desired.namespace, desired.name)
        except NotFoundError:
            self._log(ctx, logging.DEBUG, "object already absent", desired)
            return

        self._log(ctx, logging.INFO, "deleting object", observed)
        try:
            ctx.store.delete(ctx, observed)
        except NotFoundError:
            metrics.resource_operations_total.labels(kind=manager.kind, operation="delete", result="absent").inc()
            return
        except Exception:
            metrics.resource_operations_total.labels(kind=manager.kind, operation="delete", result="error").inc()
            raise
        metrics.resource_operations_total.labels(kind=manager.kind, operation="delete", result="success").inc()

    def _log(self, ctx: ReconcileContext, level: int, message: str, obj: StoreObject) -> None:
        ctx.logger.log(
            level,
            json.dumps({
                "message": message,
                "object": obj.kind_key(),
                "name": obj.name,
                "namespace": obj.namespace,
            }),
        )
