"""Unit tests for the resource registry."""

from __future__ import annotations

import pytest

from ocm_agent_operator.resources.configmap import ConfigMapManager
from ocm_agent_operator.resources.registry import ResourceRegistry, default_registry
from ocm_agent_operator.resources.secret import SecretManager
from ocm_agent_operator.resources.service import ServiceManager


class TestResourceRegistry:
    """Test registration order and lookups."""

    def test_default_order(self):
        """Test that dependencies are created before the Deployment."""
        assert default_registry().kinds == ["ConfigMap", "Service", "Secret", "Deployment"]

    def test_iteration_orders(self):
        """Test forward and reverse iteration."""
        registry = ResourceRegistry([ServiceManager(), ConfigMapManager(), SecretManager()])

        assert [m.kind for m in registry] == ["Service", "ConfigMap", "Secret"]
        assert [m.kind for m in reversed(registry)] == ["Secret", "ConfigMap", "Service"]

    def test_duplicate_kind_rejected(self):
        """Test that a kind can only be registered once."""
        registry = ResourceRegistry([ConfigMapManager()])

        with pytest.raises(ValueError, match="ConfigMap is already registered"):
            registry.register(ConfigMapManager())

    def test_lookup(self):
        """Test get, len and membership."""
        manager = ServiceManager()
        registry = ResourceRegistry([manager])

        assert registry.get("Service") is manager
        assert len(registry) == 1
        assert "Service" in registry
        assert "Deployment" not in registry
        with pytest.raises(KeyError):
            registry.get("Deployment")
