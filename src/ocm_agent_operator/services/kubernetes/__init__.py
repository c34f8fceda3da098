"""Kubernetes API backed object store."""

from .client import KubernetesObjectStore, load_kube_config, translate_api_error

__all__ = ["KubernetesObjectStore", "load_kube_config", "translate_api_error"]
