"""Resource manager for the OCM Agent Deployment."""

from __future__ import annotations

import copy
import posixpath
from typing import TYPE_CHECKING, Any

from ..constants import (
    ACCESS_TOKEN_SECRET_KEY,
    CONFIG_SERVICES_KEY,
    CONFIG_URL_KEY,
    INFRA_NODE_LABEL,
    LABEL_APP,
    OCM_AGENT_COMMAND,
    OCM_AGENT_CONFIG_MOUNT_PATH,
    OCM_AGENT_NAME,
    OCM_AGENT_PORT,
    OCM_AGENT_PORT_NAME,
    OCM_AGENT_SECRET_MOUNT_PATH,
    OCM_AGENT_SERVICE_ACCOUNT,
    OCM_AGENT_VOLUME_MODE,
)
from ..utils.errors import BuildError
from .base import DiffResult, ResourceManager
from .models import DeploymentObject, OcmAgent

if TYPE_CHECKING:
    from ..reconciler.context import ReconcileContext

# Containers whose image the operator keeps in sync
MANAGED_CONTAINERS = (OCM_AGENT_NAME,)


def build_agent_command(agent: OcmAgent) -> list[str]:
    """Return the full command line that runs the agent in its container."""
    access_token_path = posixpath.join(
        OCM_AGENT_SECRET_MOUNT_PATH, agent.spec.token_secret, ACCESS_TOKEN_SECRET_KEY
    )
    config_dir = posixpath.join(OCM_AGENT_CONFIG_MOUNT_PATH, agent.spec.ocm_agent_config)
    return [
        OCM_AGENT_COMMAND,
        "serve",
        f"--access-token=@{access_token_path}",
        f"--services=@{posixpath.join(config_dir, CONFIG_SERVICES_KEY)}",
        f"--ocm-url=@{posixpath.join(config_dir, CONFIG_URL_KEY)}",
    ]


def build_volumes(agent: OcmAgent) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Return the volumes and volume mounts for the token Secret and config ConfigMap.

    Both lists are sorted by name so the generated template is stable.
    """
    token_secret = agent.spec.token_secret
    config_name = agent.spec.ocm_agent_config
    volumes = [
        {
            "name": token_secret,
            "secret": {"secretName": token_secret, "defaultMode": OCM_AGENT_VOLUME_MODE},
        },
        {
            "name": config_name,
            "configMap": {"name": config_name, "defaultMode": OCM_AGENT_VOLUME_MODE},
        },
    ]
    mounts = [
        {"name": token_secret, "mountPath": posixpath.join(OCM_AGENT_SECRET_MOUNT_PATH, token_secret)},
        {"name": config_name, "mountPath": posixpath.join(OCM_AGENT_CONFIG_MOUNT_PATH, config_name)},
    ]
    volumes.sort(key=lambda v: v["name"])
    mounts.sort(key=lambda m: m["name"])
    return volumes, mounts


def build_affinity() -> dict[str, Any]:
    """Prefer scheduling on infra nodes."""
    return {
        "nodeAffinity": {
            "preferredDuringSchedulingIgnoredDuringExecution": [
                {
                    "preference": {
                        "matchExpressions": [{"key": INFRA_NODE_LABEL, "operator": "Exists"}],
                    },
                    "weight": 1,
                }
            ]
        }
    }


def build_tolerations() -> list[dict[str, Any]]:
    """Tolerate the infra node taint."""
    return [{"key": INFRA_NODE_LABEL, "operator": "Exists", "effect": "NoSchedule"}]


class DeploymentManager(ResourceManager[DeploymentObject]):
    """Runs the agent itself.

    Only the container images, the replica count and the scheduling
    constraints are kept in sync; the rest of the observed template
    (including the revision annotation and server defaults) is left alone.
    """

    object_type = DeploymentObject

    def object_name(self, agent: OcmAgent) -> str:
        return OCM_AGENT_NAME

    def build(self, ctx: "ReconcileContext", agent: OcmAgent) -> DeploymentObject:
        spec = agent.spec
        self.require(spec.token_secret, "tokenSecret")
        self.require(spec.ocm_agent_config, "ocmAgentConfig")
        image = self.require(spec.ocm_agent_image, "ocmAgentImage")
        if not isinstance(spec.replicas, int) or isinstance(spec.replicas, bool) or spec.replicas < 0:
            raise BuildError(f"{self.kind}: spec.replicas must be a non-negative integer, got {spec.replicas!r}")

        labels = {LABEL_APP: OCM_AGENT_NAME}
        volumes, mounts = build_volumes(agent)
        return DeploymentObject(
            name=self.object_name(agent),
            namespace=ctx.agent_namespace,
            labels=dict(labels),
            replicas=spec.replicas,
            selector={"matchLabels": dict(labels)},
            template_labels=dict(labels),
            service_account_name=OCM_AGENT_SERVICE_ACCOUNT,
            volumes=volumes,
            containers=[
                {
                    "name": OCM_AGENT_NAME,
                    "image": image,
                    "command": build_agent_command(agent),
                    "ports": [{"containerPort": OCM_AGENT_PORT, "name": OCM_AGENT_PORT_NAME}],
                    "volumeMounts": mounts,
                }
            ],
            affinity=build_affinity(),
            tolerations=build_tolerations(),
        )

    def diff(self, observed: DeploymentObject, desired: DeploymentObject) -> DiffResult[DeploymentObject]:
        changed = False
        for name in MANAGED_CONTAINERS:
            current = observed.container(name)
            expected = desired.container(name)
            current_image = (current or {}).get("image")
            if not current_image:
                changed = True
                break
            if current_image != (expected or {}).get("image"):
                changed = True

        if observed.replicas != desired.replicas:
            changed = True
        if observed.affinity != desired.affinity:
            changed = True
        if observed.tolerations != desired.tolerations:
            changed = True

        if not changed:
            return DiffResult.unchanged()

        merged = observed.copy()
        merged.replicas = desired.replicas
        merged.affinity = copy.deepcopy(desired.affinity)
        merged.tolerations = copy.deepcopy(desired.tolerations)
        for name in MANAGED_CONTAINERS:
            expected = desired.container(name)
            if expected is None:
                continue
            current = merged.container(name)
            if current is not None:
                current["image"] = expected["image"]
                continue
            # The container was removed: restore it along with the volumes it mounts
            merged.containers.append(copy.deepcopy(expected))
            present = {v.get("name") for v in merged.volumes}
            merged.volumes.extend(copy.deepcopy(v) for v in desired.volumes if v["name"] not in present)
        return DiffResult(changed=True, merged=merged)
