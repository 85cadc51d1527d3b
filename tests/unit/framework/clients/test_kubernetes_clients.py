"""
Tests for kubeconfig and in-cluster registration.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from kubernetes.config import ConfigException

from fleet_status.core.registry import EndpointRegistry, RegistrationError
from fleet_status.framework.clients import (
    IN_CLUSTER_ENDPOINT,
    build_registry,
    register_context,
    register_from_kubeconfig,
    register_in_cluster,
)
from fleet_status.framework.config import FleetStatusSettings

MODULE = "fleet_status.framework.clients.kubernetes"

CONTEXTS = [{"name": "east-1"}, {"name": "west-1"}, {"name": "broken"}]


def _client_for(config_file, context, persist_config):
    if context == "broken":
        raise ConfigException("Invalid kube-config file. No configuration found.")
    api_client = MagicMock(name=f"client-{context}")
    api_client.configuration = MagicMock(name=f"config-{context}")
    return api_client


@pytest.fixture
def k8s_config():
    with patch(f"{MODULE}.k8s_config") as mock_config:
        mock_config.list_kube_config_contexts.return_value = (CONTEXTS, {"name": "west-1"})
        mock_config.new_client_from_config.side_effect = _client_for
        yield mock_config


class TestRegisterFromKubeconfig:
    """Test best-effort registration of every kubeconfig context."""

    def test_registers_usable_contexts(self, k8s_config):
        registry = EndpointRegistry()

        registered = register_from_kubeconfig(registry, "/tmp/kubeconfig")

        assert registered == ["east-1", "west-1"]
        assert sorted(registry.names()) == ["east-1", "west-1"]
        handle = registry.get("east-1")
        assert handle.context == "east-1"
        assert handle.raw_config is handle.connection.configuration

    def test_skipped_context_is_logged(self, k8s_config, caplog):
        register_from_kubeconfig(EndpointRegistry(), "/tmp/kubeconfig")
        assert "Skipping kubeconfig context broken" in caplog.text

    def test_current_context_becomes_default(self, k8s_config):
        registry = EndpointRegistry()
        register_from_kubeconfig(registry, "/tmp/kubeconfig")
        assert registry.default_endpoint == "west-1"

    def test_existing_default_is_kept(self, k8s_config):
        registry = EndpointRegistry()
        registry.set_default_endpoint("east-1")
        register_from_kubeconfig(registry, "/tmp/kubeconfig")
        assert registry.default_endpoint == "east-1"

    def test_unreadable_file_propagates(self, k8s_config):
        k8s_config.list_kube_config_contexts.side_effect = ConfigException("no file")
        with pytest.raises(ConfigException):
            register_from_kubeconfig(EndpointRegistry(), "/tmp/missing")


class TestRegisterContext:
    """Test registration of one named context."""

    def test_registers_named_context(self, k8s_config):
        registry = EndpointRegistry()
        handle = register_context(registry, "/tmp/kubeconfig", "east-1")
        assert registry.get("east-1") is handle

    def test_unknown_context_raises(self, k8s_config):
        with pytest.raises(RegistrationError, match="context nope not found"):
            register_context(EndpointRegistry(), "/tmp/kubeconfig", "nope")

    def test_client_failure_raises(self, k8s_config):
        registry = EndpointRegistry()
        with pytest.raises(RegistrationError):
            register_context(registry, "/tmp/kubeconfig", "broken")
        assert "broken" not in registry


class TestRegisterInCluster:
    """Test registration of ambient in-cluster credentials."""

    def test_registers_and_designates_default(self, k8s_config):
        registry = EndpointRegistry()
        with patch(f"{MODULE}.client"):
            handle = register_in_cluster(registry)

        assert registry.get(IN_CLUSTER_ENDPOINT) is handle
        assert registry.default_endpoint == IN_CLUSTER_ENDPOINT

    def test_outside_cluster_raises(self, k8s_config):
        k8s_config.load_incluster_config.side_effect = ConfigException("Service host/port is not set.")
        with pytest.raises(RegistrationError):
            register_in_cluster(EndpointRegistry())


class TestBuildRegistry:
    """Test start-up construction from settings."""

    def test_applies_settings(self, k8s_config):
        settings = FleetStatusSettings(
            default_timeout=5, kubeconfig=Path("/tmp/kubeconfig"), default_endpoint="east-1"
        )

        registry = build_registry(settings)

        assert registry.default_timeout == 5.0
        assert registry.default_endpoint == "east-1"
        assert "west-1" in registry

    def test_missing_kubeconfig_leaves_registry_empty(self, k8s_config):
        k8s_config.list_kube_config_contexts.side_effect = ConfigException("no file")
        registry = build_registry(FleetStatusSettings(kubeconfig=Path("/tmp/missing")))
        assert len(registry) == 0

    def test_in_cluster_failure_is_not_fatal(self, k8s_config):
        k8s_config.load_incluster_config.side_effect = ConfigException("not in cluster")
        registry = build_registry(FleetStatusSettings(in_cluster=True))
        assert len(registry) == 0


def _write_kubeconfig(path: Path, current_context: str = "good") -> Path:
    kubeconfig = {
        "apiVersion": "v1",
        "kind": "Config",
        "current-context": current_context,
        "clusters": [{"name": "lab", "cluster": {"server": "https://127.0.0.1:6443"}}],
        "users": [{"name": "reader", "user": {"token": "not-a-real-token"}}],
        "contexts": [
            {"name": "good", "context": {"cluster": "lab", "user": "reader"}},
            {"name": "bad", "context": "oops"},
        ],
    }
    path.write_text(yaml.safe_dump(kubeconfig))
    return path


class TestMalformedKubeconfig:
    """Test registration from a real kubeconfig file with a malformed context."""

    def test_malformed_context_is_skipped(self, tmp_path, caplog):
        registry = EndpointRegistry()

        registered = register_from_kubeconfig(registry, _write_kubeconfig(tmp_path / "config"))

        assert registered == ["good"]
        assert "bad" not in registry
        assert registry.default_endpoint == "good"
        assert "Skipping kubeconfig context bad" in caplog.text

    def test_malformed_named_context_raises_registration_error(self, tmp_path):
        registry = EndpointRegistry()
        with pytest.raises(RegistrationError):
            register_context(registry, _write_kubeconfig(tmp_path / "config"), "bad")
        assert "bad" not in registry

    def test_build_registry_survives_malformed_current_context(self, tmp_path):
        path = _write_kubeconfig(tmp_path / "config", current_context="bad")
        registry = build_registry(FleetStatusSettings(kubeconfig=path))
        assert "bad" not in registry
