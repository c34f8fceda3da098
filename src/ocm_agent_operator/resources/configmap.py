"""Resource manager for the OCM Agent configuration ConfigMap."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import (
    CLUSTER_VERSION_NAME,
    CONFIG_CLUSTER_ID_KEY,
    CONFIG_SERVICES_KEY,
    CONFIG_URL_KEY,
)
from ..utils.errors import BuildError, NotFoundError
from .base import DiffResult, ResourceManager
from .models import ClusterVersionObject, ConfigMapObject, OcmAgent

if TYPE_CHECKING:
    from ..reconciler.context import ReconcileContext


class ConfigMapManager(ResourceManager[ConfigMapObject]):
    """Holds the services list, OCM URL and cluster ID read by the agent."""

    object_type = ConfigMapObject

    def object_name(self, agent: OcmAgent) -> str:
        return agent.spec.ocm_agent_config

    def build(self, ctx: "ReconcileContext", agent: OcmAgent) -> ConfigMapObject:
        name = self.require(self.object_name(agent), "ocmAgentConfig")
        base_url = self.require(agent.spec.ocm_base_url, "ocmBaseUrl")
        return ConfigMapObject(
            name=name,
            namespace=ctx.agent_namespace,
            data={
                CONFIG_SERVICES_KEY: ",".join(agent.spec.services),
                CONFIG_URL_KEY: base_url,
                CONFIG_CLUSTER_ID_KEY: self.fetch_cluster_id(ctx),
            },
        )

    def fetch_cluster_id(self, ctx: "ReconcileContext") -> str:
        """Resolve the cluster ID from the cluster-scoped ClusterVersion."""
        try:
            cluster_version = ctx.store.get(ctx, ClusterVersionObject, None, CLUSTER_VERSION_NAME)
        except NotFoundError as e:
            raise BuildError(f"unable to fetch cluster ID: {e}") from e
        if not cluster_version.cluster_id:
            raise BuildError("ClusterVersion has no spec.clusterID")
        return cluster_version.cluster_id

    def diff(self, observed: ConfigMapObject, desired: ConfigMapObject) -> DiffResult[ConfigMapObject]:
        if observed.data == desired.data:
            return DiffResult.unchanged()
        merged = observed.copy()
        merged.data = dict(desired.data)
        return DiffResult(changed=True, merged=merged)
