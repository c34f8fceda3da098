"""Typed representations of the objects the operator reads and writes.

Every object handled by the object store is one variant of ``StoreObject``.
A variant models only the fields the operator cares about; the complete wire
body observed from the API server is kept in ``body`` so that writing a
fetched object back never drops fields the variant does not model (status,
server-side defaults, annotations owned by other controllers).
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, ClassVar

from ..constants import (
    API_GROUP_VERSION,
    KIND_CLUSTER_VERSION,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_OCM_AGENT,
    KIND_SECRET,
    KIND_SERVICE,
)


def _set_or_pop(target: dict[str, Any], key: str, value: Any) -> None:
    if value is None or value == {} or value == []:
        target.pop(key, None)
    else:
        target[key] = copy.deepcopy(value)


@dataclass
class StoreObject:
    """Base class for all typed store objects."""

    API_VERSION: ClassVar[str] = ""
    KIND: ClassVar[str] = ""
    NAMESPACED: ClassVar[bool] = True

    name: str = ""
    namespace: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    owner_references: list[dict[str, Any]] = field(default_factory=list)
    resource_version: str | None = None
    body: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def kind_key(cls) -> str:
        """Return ``<apiVersion>/<kind>``, used in logs and error messages."""
        return f"{cls.API_VERSION}/{cls.KIND}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoreObject":
        """Deserialize a wire body into this variant.

        Raises:
            TypeError: If the body declares a different kind
        """
        kind = data.get("kind")
        if kind and kind != cls.KIND:
            raise TypeError(f"expected object of kind {cls.KIND} but received {kind}")
        meta = data.get("metadata") or {}
        return cls(
            name=meta.get("name", ""),
            namespace=meta.get("namespace"),
            labels=dict(meta.get("labels") or {}),
            owner_references=copy.deepcopy(meta.get("ownerReferences") or []),
            resource_version=meta.get("resourceVersion"),
            body=copy.deepcopy(data),
            **cls._fields_from_dict(data),
        )

    @classmethod
    def _fields_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {}

    def _fields_to_dict(self, data: dict[str, Any]) -> None:
        pass

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a wire body, overlaying typed fields on the observed body."""
        data = copy.deepcopy(self.body)
        data["apiVersion"] = self.API_VERSION
        data["kind"] = self.KIND
        meta = data.setdefault("metadata", {})
        meta["name"] = self.name
        if self.namespace is not None:
            meta["namespace"] = self.namespace
        _set_or_pop(meta, "labels", self.labels)
        _set_or_pop(meta, "ownerReferences", self.owner_references)
        if self.resource_version is not None:
            meta["resourceVersion"] = self.resource_version
        self._fields_to_dict(data)
        return data

    def copy(self) -> "StoreObject":
        """Return a deep copy of this object."""
        return copy.deepcopy(self)


@dataclass
class ConfigMapObject(StoreObject):
    """A core/v1 ConfigMap."""

    API_VERSION: ClassVar[str] = "v1"
    KIND: ClassVar[str] = KIND_CONFIG_MAP

    data: dict[str, str] = field(default_factory=dict)

    @classmethod
    def _fields_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {"data": dict(data.get("data") or {})}

    def _fields_to_dict(self, data: dict[str, Any]) -> None:
        _set_or_pop(data, "data", self.data)


@dataclass
class SecretObject(StoreObject):
    """A core/v1 Secret. ``data`` values are base64 encoded, as on the wire."""

    API_VERSION: ClassVar[str] = "v1"
    KIND: ClassVar[str] = KIND_SECRET

    data: dict[str, str] = field(default_factory=dict)
    type: str | None = None

    @classmethod
    def _fields_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {"data": dict(data.get("data") or {}), "type": data.get("type")}

    def _fields_to_dict(self, data: dict[str, Any]) -> None:
        _set_or_pop(data, "data", self.data)
        if self.type is not None:
            data["type"] = self.type


@dataclass
class ServiceObject(StoreObject):
    """A core/v1 Service."""

    API_VERSION: ClassVar[str] = "v1"
    KIND: ClassVar[str] = KIND_SERVICE

    selector: dict[str, str] = field(default_factory=dict)
    ports: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def _fields_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        spec = data.get("spec") or {}
        return {
            "selector": dict(spec.get("selector") or {}),
            "ports": copy.deepcopy(spec.get("ports") or []),
        }

    def _fields_to_dict(self, data: dict[str, Any]) -> None:
        spec = data.setdefault("spec", {})
        _set_or_pop(spec, "selector", self.selector)
        _set_or_pop(spec, "ports", self.ports)


@dataclass
class DeploymentObject(StoreObject):
    """An apps/v1 Deployment."""

    API_VERSION: ClassVar[str] = "apps/v1"
    KIND: ClassVar[str] = KIND_DEPLOYMENT

    replicas: int | None = None
    selector: dict[str, Any] = field(default_factory=dict)
    template_labels: dict[str, str] = field(default_factory=dict)
    service_account_name: str | None = None
    volumes: list[dict[str, Any]] = field(default_factory=list)
    containers: list[dict[str, Any]] = field(default_factory=list)
    affinity: dict[str, Any] | None = None
    tolerations: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def _fields_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        spec = data.get("spec") or {}
        template = spec.get("template") or {}
        pod_spec = template.get("spec") or {}
        return {
            "replicas": spec.get("replicas"),
            "selector": copy.deepcopy(spec.get("selector") or {}),
            "template_labels": dict((template.get("metadata") or {}).get("labels") or {}),
            "service_account_name": pod_spec.get("serviceAccountName"),
            "volumes": copy.deepcopy(pod_spec.get("volumes") or []),
            "containers": copy.deepcopy(pod_spec.get("containers") or []),
            "affinity": copy.deepcopy(pod_spec.get("affinity")),
            "tolerations": copy.deepcopy(pod_spec.get("tolerations") or []),
        }

    def _fields_to_dict(self, data: dict[str, Any]) -> None:
        spec = data.setdefault("spec", {})
        if self.replicas is not None:
            spec["replicas"] = self.replicas
        _set_or_pop(spec, "selector", self.selector)
        template = spec.setdefault("template", {})
        _set_or_pop(template.setdefault("metadata", {}), "labels", self.template_labels)
        pod_spec = template.setdefault("spec", {})
        _set_or_pop(pod_spec, "serviceAccountName", self.service_account_name)
        _set_or_pop(pod_spec, "volumes", self.volumes)
        _set_or_pop(pod_spec, "containers", self.containers)
        _set_or_pop(pod_spec, "affinity", self.affinity)
        _set_or_pop(pod_spec, "tolerations", self.tolerations)

    def container(self, name: str) -> dict[str, Any] | None:
        """Return the pod template container called ``name``, if any."""
        for container in self.containers:
            if container.get("name") == name:
                return container
        return None


@dataclass
class ClusterVersionObject(StoreObject):
    """The cluster-scoped config.openshift.io/v1 ClusterVersion. Read only."""

    API_VERSION: ClassVar[str] = "config.openshift.io/v1"
    KIND: ClassVar[str] = KIND_CLUSTER_VERSION
    NAMESPACED: ClassVar[bool] = False

    cluster_id: str = ""

    @classmethod
    def _fields_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {"cluster_id": (data.get("spec") or {}).get("clusterID", "")}

    def _fields_to_dict(self, data: dict[str, Any]) -> None:
        data.setdefault("spec", {})["clusterID"] = self.cluster_id


# Variants the object store knows how to (de)serialize, keyed by kind
STORE_KINDS: dict[str, type[StoreObject]] = {
    cls.KIND: cls
    for cls in (ConfigMapObject, SecretObject, ServiceObject, DeploymentObject, ClusterVersionObject)
}


@dataclass
class OcmAgentSpec:
    """Desired configuration of an OCM Agent deployment."""

    ocm_agent_image: str = ""
    ocm_agent_config: str = ""
    token_secret: str = ""
    ocm_base_url: str = ""
    services: list[str] = field(default_factory=list)
    replicas: int = 1

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> "OcmAgentSpec":
        replicas = spec.get("replicas")
        return cls(
            ocm_agent_image=spec.get("ocmAgentImage") or "",
            ocm_agent_config=spec.get("ocmAgentConfig") or "",
            token_secret=spec.get("tokenSecret") or "",
            ocm_base_url=spec.get("ocmBaseUrl") or "",
            services=list(spec.get("services") or []),
            replicas=1 if replicas is None else replicas,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ocmAgentImage": self.ocm_agent_image,
            "ocmAgentConfig": self.ocm_agent_config,
            "tokenSecret": self.token_secret,
            "ocmBaseUrl": self.ocm_base_url,
            "services": list(self.services),
            "replicas": self.replicas,
        }


@dataclass
class OcmAgent:
    """The OcmAgent custom resource: the parent of every managed resource."""

    API_VERSION: ClassVar[str] = API_GROUP_VERSION
    KIND: ClassVar[str] = KIND_OCM_AGENT

    name: str
    namespace: str
    uid: str = ""
    generation: int = 0
    resource_version: str | None = None
    spec: OcmAgentSpec = field(default_factory=OcmAgentSpec)
    status: dict[str, Any] = field(default_factory=dict)
    deletion_timestamp: str | None = None
    finalizers: list[str] = field(default_factory=list)
    body: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def deletion_requested(self) -> bool:
        """Whether removal of the resource has been requested."""
        return bool(self.deletion_timestamp)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OcmAgent":
        meta = data.get("metadata") or {}
        return cls(
            name=meta.get("name", ""),
            namespace=meta.get("namespace", ""),
            uid=meta.get("uid", ""),
            generation=meta.get("generation", 0),
            resource_version=meta.get("resourceVersion"),
            spec=OcmAgentSpec.from_dict(data.get("spec") or {}),
            status=copy.deepcopy(data.get("status") or {}),
            deletion_timestamp=meta.get("deletionTimestamp"),
            finalizers=list(meta.get("finalizers") or []),
            body=copy.deepcopy(data),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a wire body; the spec is written back as observed."""
        data = copy.deepcopy(self.body)
        data["apiVersion"] = self.API_VERSION
        data["kind"] = self.KIND
        meta = data.setdefault("metadata", {})
        meta["name"] = self.name
        meta["namespace"] = self.namespace
        if self.uid:
            meta["uid"] = self.uid
        if self.resource_version is not None:
            meta["resourceVersion"] = self.resource_version
        meta["finalizers"] = list(self.finalizers)
        if "spec" not in data:
            data["spec"] = self.spec.to_dict()
        if self.status:
            data["status"] = copy.deepcopy(self.status)
        return data

    def meta(self) -> dict[str, Any]:
        """Metadata dict in the shape logging and event helpers expect."""
        return {
            "name": self.name,
            "namespace": self.namespace,
            "uid": self.uid,
            "generation": self.generation,
        }
