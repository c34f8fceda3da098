"""Managed resource kinds and their managers."""

from .base import DiffResult, ResourceManager
from .configmap import ConfigMapManager
from .deployment import DeploymentManager
from .models import (
    ClusterVersionObject,
    ConfigMapObject,
    DeploymentObject,
    OcmAgent,
    OcmAgentSpec,
    SecretObject,
    ServiceObject,
    StoreObject,
)
from .registry import ResourceRegistry, default_registry
from .secret import SecretManager
from .service import ServiceManager

__all__ = [
    "DiffResult",
    "ResourceManager",
    "ResourceRegistry",
    "default_registry",
    "ConfigMapManager",
    "ServiceManager",
    "SecretManager",
    "DeploymentManager",
    "StoreObject",
    "ConfigMapObject",
    "SecretObject",
    "ServiceObject",
    "DeploymentObject",
    "ClusterVersionObject",
    "OcmAgent",
    "OcmAgentSpec",
]
