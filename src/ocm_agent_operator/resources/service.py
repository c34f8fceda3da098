"""Resource manager for the OCM Agent Service."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from ..constants import (
    LABEL_APP,
    OCM_AGENT_NAME,
    OCM_AGENT_PORT_NAME,
    OCM_AGENT_SERVICE_NAME,
    OCM_AGENT_SERVICE_PORT,
)
from .base import DiffResult, ResourceManager
from .models import OcmAgent, ServiceObject

if TYPE_CHECKING:
    from ..reconciler.context import ReconcileContext


class ServiceManager(ResourceManager[ServiceObject]):
    """Exposes the agent pods inside the cluster."""

    object_type = ServiceObject

    def object_name(self, agent: OcmAgent) -> str:
        return OCM_AGENT_SERVICE_NAME

    def build(self, ctx: "ReconcileContext", agent: OcmAgent) -> ServiceObject:
        return ServiceObject(
            name=self.object_name(agent),
            namespace=ctx.agent_namespace,
            selector={LABEL_APP: OCM_AGENT_NAME},
            ports=[
                {
                    "name": OCM_AGENT_PORT_NAME,
                    "port": OCM_AGENT_SERVICE_PORT,
                    "targetPort": OCM_AGENT_SERVICE_PORT,
                    "protocol": "TCP",
                }
            ],
        )

    def diff(self, observed: ServiceObject, desired: ServiceObject) -> DiffResult[ServiceObject]:
        # Cluster IP, type and session affinity are assigned by the API server
        if observed.selector == desired.selector and observed.ports == desired.ports:
            return DiffResult.unchanged()
        merged = observed.copy()
        merged.selector = dict(desired.selector)
        merged.ports = copy.deepcopy(desired.ports)
        return DiffResult(changed=True, merged=merged)
