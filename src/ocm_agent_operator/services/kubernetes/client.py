"""Kubernetes implementation of the object store."""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from kubernetes import client, config, dynamic
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import DynamicApiError

from ... import metrics
from ...constants import API_GROUP_VERSION, FIELD_MANAGER, KIND_OCM_AGENT
from ...resources.models import OcmAgent, StoreObject
from ...utils.errors import AlreadyExistsError, ConflictError, NotFoundError, StoreError
from ...utils.rate_limit import RateLimiter

if TYPE_CHECKING:
    from ...reconciler.context import ReconcileContext

logger = logging.getLogger(__name__)

_T = TypeVar("_T", bound=StoreObject)
_R = TypeVar("_R")


def load_kube_config() -> client.ApiClient:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()
    return client.ApiClient()


def translate_api_error(error: Exception, description: str) -> StoreError:
    """Map a Kubernetes API error onto the store error hierarchy.

    A 409 means either "already exists" (create) or a stale resource
    version (update); the Status reason in the body tells them apart.
    """
    status = getattr(error, "status", None)
    reason = None
    body = getattr(error, "body", None)
    if body:
        try:
            reason = json.loads(body).get("reason")
        except (TypeError, ValueError, AttributeError):
            reason = None

    message = f"{description}: {status} {reason or getattr(error, 'reason', '')}".strip()
    if status == 404:
        return NotFoundError(message, status=status)
    if status == 409 and reason == "AlreadyExists":
        return AlreadyExistsError(message, status=status)
    if status == 409:
        return ConflictError(message, status=status)
    return StoreError(message, status=status)


class KubernetesObjectStore:
    """Object store backed by the Kubernetes API.

    Uses the dynamic client so any kind known to ``resources.models`` can be
    read and written. Safe for concurrent use by kopf's worker threads.
    """

    def __init__(
        self,
        api_client: client.ApiClient | None = None,
        rate_limit_per_second: float = 10.0,
    ):
        self.api_client = api_client or load_kube_config()
        self._dynamic: dynamic.DynamicClient | None = None
        self._resources: dict[tuple[str, str], Any] = {}
        self._lock = threading.Lock()
        self.rate_limiter = RateLimiter(rate_limit_per_second)

    @property
    def dynamic_client(self) -> dynamic.DynamicClient:
        with self._lock:
            if self._dynamic is None:
                self._dynamic = dynamic.DynamicClient(self.api_client)
            return self._dynamic

    def _resource(self, api_version: str, kind: str) -> Any:
        key = (api_version, kind)
        with self._lock:
            cached = self._resources.get(key)
        if cached is not None:
            return cached
        resource = self.dynamic_client.resources.get(api_version=api_version, kind=kind)
        with self._lock:
            self._resources[key] = resource
        return resource

    def _call(
        self,
        ctx: "ReconcileContext",
        operation: str,
        description: str,
        fn: Callable[..., _R],
        **kwargs: Any,
    ) -> _R:
        ctx.check()
        self.rate_limiter.acquire(ctx.remaining())
        start_time = time.time()
        try:
            result = fn(_request_timeout=ctx.request_timeout(), **kwargs)
        except (ApiException, DynamicApiError) as e:
            translated = translate_api_error(e, description)
            result_label = "not_found" if isinstance(translated, NotFoundError) else "error"
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result=result_label).inc()
            raise translated from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
        return result

    @staticmethod
    def _to_dict(result: Any) -> dict[str, Any]:
        return result.to_dict() if hasattr(result, "to_dict") else dict(result)

    def get(self, ctx: "ReconcileContext", kind: type[_T], namespace: str | None, name: str) -> _T:
        resource = self._resource(kind.API_VERSION, kind.KIND)
        result = self._call(
            ctx,
            "get",
            f"get {kind.KIND} {namespace or ''}/{name}",
            resource.get,
            name=name,
            namespace=namespace if kind.NAMESPACED else None,
        )
        return kind.from_dict(self._to_dict(result))  # type: ignore[return-value]

    def create(self, ctx: "ReconcileContext", obj: StoreObject) -> StoreObject:
        resource = self._resource(obj.API_VERSION, obj.KIND)
        body = obj.to_dict()
        body["metadata"].pop("resourceVersion", None)
        result = self._call(
            ctx,
            "create",
            f"create {obj.KIND} {obj.namespace}/{obj.name}",
            resource.create,
            body=body,
            namespace=obj.namespace,
            field_manager=FIELD_MANAGER,
        )
        return type(obj).from_dict(self._to_dict(result))

    def update(self, ctx: "ReconcileContext", obj: StoreObject) -> StoreObject:
        resource = self._resource(obj.API_VERSION, obj.KIND)
        result = self._call(
            ctx,
            "update",
            f"update {obj.KIND} {obj.namespace}/{obj.name}",
            resource.replace,
            body=obj.to_dict(),
            namespace=obj.namespace,
            field_manager=FIELD_MANAGER,
        )
        return type(obj).from_dict(self._to_dict(result))

    def delete(self, ctx: "ReconcileContext", obj: StoreObject) -> None:
        resource = self._resource(obj.API_VERSION, obj.KIND)
        self._call(
            ctx,
            "delete",
            f"delete {obj.KIND} {obj.namespace}/{obj.name}",
            resource.delete,
            name=obj.name,
            namespace=obj.namespace,
            body={"propagationPolicy": "Background"},
        )

    def get_parent(self, ctx: "ReconcileContext", namespace: str, name: str) -> OcmAgent:
        resource = self._resource(API_GROUP_VERSION, KIND_OCM_AGENT)
        result = self._call(
            ctx,
            "get_parent",
            f"get {KIND_OCM_AGENT} {namespace}/{name}",
            resource.get,
            name=name,
            namespace=namespace,
        )
        return OcmAgent.from_dict(self._to_dict(result))

    def update_parent(self, ctx: "ReconcileContext", agent: OcmAgent) -> OcmAgent:
        resource = self._resource(API_GROUP_VERSION, KIND_OCM_AGENT)
        result = self._call(
            ctx,
            "update_parent",
            f"update {KIND_OCM_AGENT} {agent.namespace}/{agent.name}",
            resource.replace,
            body=agent.to_dict(),
            namespace=agent.namespace,
            field_manager=FIELD_MANAGER,
        )
        return OcmAgent.from_dict(self._to_dict(result))

    def patch_parent_status(self, ctx: "ReconcileContext", agent: OcmAgent, status: dict[str, Any]) -> None:
        resource = self._resource(API_GROUP_VERSION, KIND_OCM_AGENT)
        self._call(
            ctx,
            "patch_parent_status",
            f"patch {KIND_OCM_AGENT} {agent.namespace}/{agent.name} status",
            resource.status.patch,
            body={"metadata": {"name": agent.name}, "status": status},
            name=agent.name,
            namespace=agent.namespace,
            content_type="application/merge-patch+json",
            field_manager=FIELD_MANAGER,
        )
