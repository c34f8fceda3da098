"""Shared fixtures: an in-memory object store and seeded cluster state."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any
from unittest.mock import patch

import pytest

from ocm_agent_operator.config import OperatorConfig
from ocm_agent_operator.constants import (
    API_GROUP_VERSION,
    DEFAULT_AGENT_NAMESPACE,
    KIND_OCM_AGENT,
    PULL_SECRET_NAME,
    PULL_SECRET_NAMESPACE,
)
from ocm_agent_operator.reconciler.context import ReconcileContext
from ocm_agent_operator.resources.models import OcmAgent, StoreObject
from ocm_agent_operator.utils.errors import AlreadyExistsError, ConflictError, NotFoundError
from ocm_agent_operator.utils.secrets import encode_secret_value

CLUSTER_ID = "d1a3b2c4-0000-4000-8000-000000000001"
ACCESS_TOKEN = "b2NtLWFjY2Vzcy10b2tlbg=="


class FakeObjectStore:
    """In-memory ObjectStore that records every call.

    Objects are stored as wire dicts keyed by ``(kind, namespace, name)``.
    Writes bump ``resourceVersion``; updates with a stale version conflict.
    ``fail(operation, kind, error, times)`` makes the next matching calls
    raise ``error`` before touching state.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str | None, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str | None, str]] = []
        self._failures: list[list[Any]] = []
        self._version = 0

    # Test helpers

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def put(self, body: dict[str, Any]) -> dict[str, Any]:
        """Seed an object directly, bypassing call recording."""
        body = copy.deepcopy(body)
        meta = body.setdefault("metadata", {})
        meta["resourceVersion"] = self._next_version()
        key = (body["kind"], meta.get("namespace"), meta["name"])
        self.objects[key] = body
        return body

    def peek(self, kind: str, namespace: str | None, name: str) -> dict[str, Any] | None:
        body = self.objects.get((kind, namespace, name))
        return copy.deepcopy(body) if body is not None else None

    def fail(self, operation: str, kind: str, error: Exception, times: int = 1) -> None:
        self._failures.append([operation, kind, error, times])

    def writes(self) -> list[tuple[str, str, str | None, str]]:
        return [c for c in self.calls if c[0] in ("create", "update", "delete")]

    def _record(self, operation: str, kind: str, namespace: str | None, name: str) -> None:
        self.calls.append((operation, kind, namespace, name))
        for failure in self._failures:
            if failure[0] == operation and failure[1] == kind and failure[3] > 0:
                failure[3] -= 1
                raise failure[2]

    # ObjectStore

    def get(self, ctx: Any, kind: type[StoreObject], namespace: str | None, name: str) -> StoreObject:
        namespace = namespace if kind.NAMESPACED else None
        self._record("get", kind.KIND, namespace, name)
        body = self.objects.get((kind.KIND, namespace, name))
        if body is None:
            raise NotFoundError(f"{kind.KIND} {namespace}/{name} not found", status=404)
        return kind.from_dict(copy.deepcopy(body))

    def create(self, ctx: Any, obj: StoreObject) -> StoreObject:
        self._record("create", obj.KIND, obj.namespace, obj.name)
        key = (obj.KIND, obj.namespace, obj.name)
        if key in self.objects:
            raise AlreadyExistsError(f"{obj.KIND} {obj.namespace}/{obj.name} already exists", status=409)
        body = obj.to_dict()
        body["metadata"]["resourceVersion"] = self._next_version()
        self.objects[key] = body
        return type(obj).from_dict(copy.deepcopy(body))

    def update(self, ctx: Any, obj: StoreObject) -> StoreObject:
        self._record("update", obj.KIND, obj.namespace, obj.name)
        key = (obj.KIND, obj.namespace, obj.name)
        current = self.objects.get(key)
        if current is None:
            raise NotFoundError(f"{obj.KIND} {obj.namespace}/{obj.name} not found", status=404)
        if obj.resource_version != current["metadata"]["resourceVersion"]:
            raise ConflictError(f"{obj.KIND} {obj.namespace}/{obj.name} was modified", status=409)
        body = obj.to_dict()
        body["metadata"]["resourceVersion"] = self._next_version()
        self.objects[key] = body
        return type(obj).from_dict(copy.deepcopy(body))

    def delete(self, ctx: Any, obj: StoreObject) -> None:
        self._record("delete", obj.KIND, obj.namespace, obj.name)
        key = (obj.KIND, obj.namespace, obj.name)
        if key not in self.objects:
            raise NotFoundError(f"{obj.KIND} {obj.namespace}/{obj.name} not found", status=404)
        del self.objects[key]

    def get_parent(self, ctx: Any, namespace: str, name: str) -> OcmAgent:
        self._record("get_parent", KIND_OCM_AGENT, namespace, name)
        body = self.objects.get((KIND_OCM_AGENT, namespace, name))
        if body is None:
            raise NotFoundError(f"{KIND_OCM_AGENT} {namespace}/{name} not found", status=404)
        return OcmAgent.from_dict(copy.deepcopy(body))

    def update_parent(self, ctx: Any, agent: OcmAgent) -> OcmAgent:
        self._record("update_parent", KIND_OCM_AGENT, agent.namespace, agent.name)
        key = (KIND_OCM_AGENT, agent.namespace, agent.name)
        current = self.objects.get(key)
        if current is None:
            raise NotFoundError(f"{KIND_OCM_AGENT} {agent.namespace}/{agent.name} not found", status=404)
        if agent.resource_version != current["metadata"]["resourceVersion"]:
            raise ConflictError(f"{KIND_OCM_AGENT} {agent.namespace}/{agent.name} was modified", status=409)
        body = agent.to_dict()
        body["metadata"]["resourceVersion"] = self._next_version()
        if body["metadata"].get("deletionTimestamp") and not body["metadata"].get("finalizers"):
            # Last finalizer released: the API server completes the deletion
            del self.objects[key]
        else:
            self.objects[key] = body
        return OcmAgent.from_dict(copy.deepcopy(body))

    def patch_parent_status(self, ctx: Any, agent: OcmAgent, status: dict[str, Any]) -> None:
        self._record("patch_parent_status", KIND_OCM_AGENT, agent.namespace, agent.name)
        key = (KIND_OCM_AGENT, agent.namespace, agent.name)
        current = self.objects.get(key)
        if current is None:
            raise NotFoundError(f"{KIND_OCM_AGENT} {agent.namespace}/{agent.name} not found", status=404)
        current.setdefault("status", {}).update(copy.deepcopy(status))
        current["metadata"]["resourceVersion"] = self._next_version()


def make_agent_body(
    name: str = "ocmagent",
    namespace: str = DEFAULT_AGENT_NAMESPACE,
    **spec_overrides: Any,
) -> dict[str, Any]:
    spec = {
        "ocmAgentImage": "quay.io/app-sre/ocm-agent:v1",
        "ocmAgentConfig": "ocm-agent-cm",
        "tokenSecret": "ocm-access-token",
        "ocmBaseUrl": "https://api.openshift.com",
        "services": ["service_logs", "clusters"],
        "replicas": 1,
    }
    spec.update(spec_overrides)
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_OCM_AGENT,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": "6f1c2a3e-1111-4222-8333-444455556666",
            "generation": 1,
        },
        "spec": spec,
    }


def pull_secret_body(token: str = ACCESS_TOKEN) -> dict[str, Any]:
    docker_config = json.dumps({
        "auths": {
            "cloud.openshift.com": {"auth": token, "email": "user@example.com"},
            "quay.io": {"auth": "cXVheQ=="},
        }
    })
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {"name": PULL_SECRET_NAME, "namespace": PULL_SECRET_NAMESPACE},
        "type": "kubernetes.io/dockerconfigjson",
        "data": {".dockerconfigjson": encode_secret_value(docker_config)},
    }


def cluster_version_body(cluster_id: str = CLUSTER_ID) -> dict[str, Any]:
    return {
        "apiVersion": "config.openshift.io/v1",
        "kind": "ClusterVersion",
        "metadata": {"name": "version"},
        "spec": {"clusterID": cluster_id, "channel": "stable-4.14"},
    }


@pytest.fixture(autouse=True)
def mock_kopf_event():
    """Kubernetes events can only be posted from inside a running operator."""
    with patch("kopf.event") as mocked:
        yield mocked


@pytest.fixture
def store() -> FakeObjectStore:
    """Store seeded with the cluster pull secret and ClusterVersion."""
    fake = FakeObjectStore()
    fake.put(pull_secret_body())
    fake.put(cluster_version_body())
    return fake


@pytest.fixture
def ctx(store: FakeObjectStore) -> ReconcileContext:
    return ReconcileContext(
        store=store,
        config=OperatorConfig(),
        logger=logging.getLogger("ocm_agent_operator.tests"),
    )


@pytest.fixture
def agent_body() -> dict[str, Any]:
    return make_agent_body()


@pytest.fixture
def agent(agent_body: dict[str, Any]) -> OcmAgent:
    return OcmAgent.from_dict(agent_body)


@pytest.fixture
def agent_factory():
    """Build OcmAgent wire bodies with spec overrides."""
    return make_agent_body


@pytest.fixture
def seeded_agent(store: FakeObjectStore, agent_body: dict[str, Any]) -> dict[str, Any]:
    """The default OcmAgent, stored."""
    return store.put(agent_body)
