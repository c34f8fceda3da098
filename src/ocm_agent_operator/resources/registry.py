"""Ordered registry of resource managers."""

from __future__ import annotations

from typing import Iterable, Iterator

from .base import ResourceManager
from .configmap import ConfigMapManager
from .deployment import DeploymentManager
from .secret import SecretManager
from .service import ServiceManager


class ResourceRegistry:
    """Maps each managed kind to its manager, preserving registration order.

    Registration order is creation order: dependencies first. Removal walks
    the registry in reverse.
    """

    def __init__(self, managers: Iterable[ResourceManager] = ()):
        self._managers: dict[str, ResourceManager] = {}
        for manager in managers:
            self.register(manager)

    def register(self, manager: ResourceManager) -> None:
        """Append ``manager``.

        Raises:
            ValueError: If a manager for the same kind is already registered
        """
        if manager.kind in self._managers:
            raise ValueError(f"a resource manager for kind {manager.kind} is already registered")
        self._managers[manager.kind] = manager

    def get(self, kind: str) -> ResourceManager:
        return self._managers[kind]

    @property
    def kinds(self) -> list[str]:
        return list(self._managers)

    def __iter__(self) -> Iterator[ResourceManager]:
        return iter(list(self._managers.values()))

    def __reversed__(self) -> Iterator[ResourceManager]:
        return reversed(list(self._managers.values()))

    def __len__(self) -> int:
        return len(self._managers)

    def __contains__(self, kind: object) -> bool:
        return kind in self._managers


def default_registry() -> ResourceRegistry:
    """The managers every OcmAgent owns, in creation order."""
    return ResourceRegistry(
        [
            ConfigMapManager(),
            ServiceManager(),
            SecretManager(),
            DeploymentManager(),
        ]
    )
