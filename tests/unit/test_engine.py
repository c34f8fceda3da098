"""Unit tests for the reconciliation engine."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from ocm_agent_operator.constants import DEFAULT_AGENT_NAMESPACE
from ocm_agent_operator.reconciler.engine import ResourceReconciler
from ocm_agent_operator.resources.configmap import ConfigMapManager
from ocm_agent_operator.resources.models import OcmAgent
from ocm_agent_operator.resources.registry import ResourceRegistry, default_registry
from ocm_agent_operator.resources.secret import SecretManager
from ocm_agent_operator.resources.service import ServiceManager
from ocm_agent_operator.utils.errors import BuildError, ConflictError, NotFoundError, StoreError
from ocm_agent_operator.utils.retry import RetryPolicy

NS = DEFAULT_AGENT_NAMESPACE


@pytest.fixture
def reconciler():
    return ResourceReconciler(default_registry(), RetryPolicy(sleep=lambda _: None))


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestEnsurePresent:
    """Test create-or-update across all managed kinds."""

    def test_creates_every_kind_in_order(self, ctx, store, agent, reconciler):
        """Test that an empty namespace gets one create per kind, in registration order."""
        reconciler.ensure_present(ctx, agent)

        assert store.writes() == [
            ("create", "ConfigMap", NS, "ocm-agent-cm"),
            ("create", "Service", NS, "ocm-agent"),
            ("create", "Secret", NS, "ocm-access-token"),
            ("create", "Deployment", NS, "ocm-agent"),
        ]

    def test_created_objects_are_owned_by_agent(self, ctx, store, agent, reconciler):
        """Test that every created object carries a controller owner reference."""
        reconciler.ensure_present(ctx, agent)

        for kind, name in [("ConfigMap", "ocm-agent-cm"), ("Deployment", "ocm-agent")]:
            refs = store.peek(kind, NS, name)["metadata"]["ownerReferences"]
            assert len(refs) == 1
            assert refs[0]["kind"] == "OcmAgent"
            assert refs[0]["name"] == agent.name
            assert refs[0]["uid"] == agent.uid
            assert refs[0]["controller"] is True

    def test_idempotent(self, ctx, store, agent, reconciler):
        """Test that a second pass without external changes writes nothing."""
        reconciler.ensure_present(ctx, agent)
        store.calls.clear()

        reconciler.ensure_present(ctx, agent)

        assert store.writes() == []

    def test_convergence_updates_once_and_keeps_unmanaged_fields(self, ctx, store, agent, reconciler):
        """Test that drift in a managed field causes exactly one update."""
        reconciler.ensure_present(ctx, agent)
        deployment = store.objects[("Deployment", NS, "ocm-agent")]
        deployment["spec"]["replicas"] = 5
        deployment["spec"]["strategy"] = {"type": "Recreate"}
        deployment["metadata"]["annotations"] = {"deployment.kubernetes.io/revision": "2"}
        store.calls.clear()

        reconciler.ensure_present(ctx, agent)

        assert store.writes() == [("update", "Deployment", NS, "ocm-agent")]
        stored = store.peek("Deployment", NS, "ocm-agent")
        assert stored["spec"]["replicas"] == 1
        assert stored["spec"]["strategy"] == {"type": "Recreate"}
        assert stored["metadata"]["annotations"] == {"deployment.kubernetes.io/revision": "2"}

    def test_convergence_keeps_unmanaged_container_fields(self, ctx, store, agent, agent_factory, reconciler):
        """Test that an image update leaves the rest of the container as observed."""
        reconciler.ensure_present(ctx, agent)
        deployment = store.objects[("Deployment", NS, "ocm-agent")]
        container = deployment["spec"]["template"]["spec"]["containers"][0]
        container["env"] = [{"name": "LOG_LEVEL", "value": "debug"}]
        container["resources"] = {"limits": {"memory": "128Mi"}}
        container["terminationMessagePath"] = "/dev/termination-log"
        updated = OcmAgent.from_dict(agent_factory(ocmAgentImage="quay.io/app-sre/ocm-agent:v2"))
        store.calls.clear()

        reconciler.ensure_present(ctx, updated)

        assert store.writes() == [("update", "Deployment", NS, "ocm-agent")]
        stored = store.peek("Deployment", NS, "ocm-agent")["spec"]["template"]["spec"]["containers"][0]
        assert stored == dict(container, image="quay.io/app-sre/ocm-agent:v2")

        store.calls.clear()
        reconciler.ensure_present(ctx, updated)
        assert store.writes() == []

    def test_conflict_twice_then_success(self, ctx, store, agent, reconciler):
        """Test that two conflicts lead to three fetch-compare-write cycles."""
        reconciler.ensure_present(ctx, agent)
        store.objects[("Deployment", NS, "ocm-agent")]["spec"]["replicas"] = 5
        store.fail("update", "Deployment", ConflictError("modified", status=409), times=2)
        store.calls.clear()
        before = _sample("ocm_agent_operator_conflict_retries_total", kind="Deployment")

        reconciler.ensure_present(ctx, agent)

        deployment_calls = [c[0] for c in store.calls if c[1] == "Deployment"]
        assert deployment_calls == ["get", "update", "get", "update", "get", "update"]
        assert store.peek("Deployment", NS, "ocm-agent")["spec"]["replicas"] == 1
        assert _sample("ocm_agent_operator_conflict_retries_total", kind="Deployment") == before + 2

    def test_conflict_exhausts_retries(self, ctx, store, agent):
        """Test that a persistent conflict is raised after the configured attempts."""
        reconciler = ResourceReconciler(default_registry(), RetryPolicy(steps=3, sleep=lambda _: None))
        reconciler.ensure_present(ctx, agent)
        store.objects[("ConfigMap", NS, "ocm-agent-cm")]["data"]["services"] = "stale"
        store.fail("update", "ConfigMap", ConflictError("modified", status=409), times=10)
        store.calls.clear()

        with pytest.raises(ConflictError):
            reconciler.ensure_present(ctx, agent)

        assert [c[0] for c in store.writes()] == ["update", "update", "update"]

    def test_other_store_errors_are_not_retried(self, ctx, store, agent, reconciler):
        """Test that non-conflict errors abort the pass immediately."""
        store.fail("create", "Service", StoreError("forbidden", status=403))

        with pytest.raises(StoreError, match="forbidden"):
            reconciler.ensure_present(ctx, agent)

        assert [c for c in store.writes() if c[1] == "Service"] == [("create", "Service", NS, "ocm-agent")]
        assert ("ConfigMap", NS, "ocm-agent-cm") in store.objects
        assert ("Secret", NS, "ocm-access-token") not in store.objects

    def test_build_failure_keeps_earlier_kinds(self, ctx, store, agent_factory, reconciler):
        """Test that a build failure stops the pass without rolling back earlier kinds."""
        agent = OcmAgent.from_dict(agent_factory(tokenSecret=""))

        with pytest.raises(BuildError, match="tokenSecret"):
            reconciler.ensure_present(ctx, agent)

        assert store.writes() == [
            ("create", "ConfigMap", NS, "ocm-agent-cm"),
            ("create", "Service", NS, "ocm-agent"),
        ]
        assert ("Deployment", NS, "ocm-agent") not in store.objects

    def test_write_metrics(self, ctx, store, agent, reconciler):
        """Test that successful creates are counted per kind."""
        before = _sample("ocm_agent_operator_resource_operations_total", kind="Secret", operation="create", result="success")

        reconciler.ensure_present(ctx, agent)

        after = _sample("ocm_agent_operator_resource_operations_total", kind="Secret", operation="create", result="success")
        assert after == before + 1


class TestEnsureAbsent:
    """Test deletion of managed resources."""

    def test_deletes_in_reverse_order(self, ctx, store, agent, reconciler):
        """Test that removal walks the registry backwards."""
        reconciler.ensure_present(ctx, agent)
        store.calls.clear()

        reconciler.ensure_absent(ctx, agent)

        assert store.writes() == [
            ("delete", "Deployment", NS, "ocm-agent"),
            ("delete", "Secret", NS, "ocm-access-token"),
            ("delete", "Service", NS, "ocm-agent"),
            ("delete", "ConfigMap", NS, "ocm-agent-cm"),
        ]

    def test_absent_resources_are_success(self, ctx, store, agent, reconciler):
        """Test that nothing is deleted when nothing exists."""
        reconciler.ensure_absent(ctx, agent)

        assert store.writes() == []

    def test_removal_ignores_invalid_spec_and_lookups(self, ctx, store, agent, agent_factory, reconciler):
        """Test that removal only needs object names, not a buildable spec."""
        reconciler.ensure_present(ctx, agent)
        del store.objects[("Secret", "openshift-config", "pull-secret")]
        del store.objects[("ClusterVersion", None, "version")]
        broken = OcmAgent.from_dict(agent_factory(ocmAgentImage="", ocmBaseUrl=""))
        store.calls.clear()

        reconciler.ensure_absent(ctx, broken)

        assert len(store.writes()) == 4
        assert ("ClusterVersion", None, "version") not in [c[1:] for c in store.calls]

    def test_removal_skips_kinds_the_spec_does_not_name(self, ctx, store, agent_factory, reconciler):
        """Test that an unnamed ConfigMap or Secret is treated as absent."""
        broken = OcmAgent.from_dict(agent_factory(ocmAgentConfig="", tokenSecret=""))

        reconciler.ensure_absent(ctx, broken)

        assert [c[1] for c in store.calls] == ["Deployment", "Service"]

    def test_delete_not_found_is_success(self, ctx, store, agent, reconciler):
        """Test that an object vanishing between get and delete is not an error."""
        reconciler.ensure_present(ctx, agent)
        store.fail("delete", "Service", NotFoundError("gone", status=404))

        reconciler.ensure_absent(ctx, agent)

        assert ("Service", NS, "ocm-agent") in store.objects
        assert ("ConfigMap", NS, "ocm-agent-cm") not in store.objects

    def test_delete_error_stops_pass(self, ctx, store, agent, reconciler):
        """Test that a failed delete aborts before earlier kinds are removed."""
        reconciler.ensure_present(ctx, agent)
        store.fail("delete", "Secret", StoreError("forbidden", status=403))

        with pytest.raises(StoreError):
            reconciler.ensure_absent(ctx, agent)

        assert ("Deployment", NS, "ocm-agent") not in store.objects
        assert ("Service", NS, "ocm-agent") in store.objects
        assert ("ConfigMap", NS, "ocm-agent-cm") in store.objects


class TestOrdering:
    """Test call ordering with a three-kind registry."""

    def test_three_kind_registry(self, ctx, store, agent):
        """Test forward order on create and reverse order on delete."""
        registry = ResourceRegistry([SecretManager(), ConfigMapManager(), ServiceManager()])
        reconciler = ResourceReconciler(registry, RetryPolicy(sleep=lambda _: None))

        reconciler.ensure_present(ctx, agent)
        created = [c[1] for c in store.writes()]
        store.calls.clear()
        reconciler.ensure_absent(ctx, agent)
        deleted = [c[1] for c in store.writes()]

        assert created == ["Secret", "ConfigMap", "Service"]
        assert deleted == ["Service", "ConfigMap", "Secret"]
