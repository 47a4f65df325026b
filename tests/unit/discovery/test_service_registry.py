"""Unit tests for deployment-neutral service discovery."""

import pytest

from lsp_core_lib.discovery import (
    ServiceRegistry,
    get_service_registry,
    reset_service_registry,
)


class TestServiceRegistry:
    """Tests for URL resolution per deployment mode."""

    def test_docker_is_default(self, monkeypatch):
        monkeypatch.delenv("DEPLOYMENT_MODE", raising=False)
        assert ServiceRegistry().get_url("case-store") == "http://lsp-case-store-service:8010"

    def test_kubernetes_uses_namespace(self):
        registry = ServiceRegistry(mode="kubernetes", namespace="prod")
        assert (
            registry.get_url("notification")
            == "http://lsp-notification-service.prod.svc.cluster.local:8020"
        )

    def test_local_mode(self):
        assert ServiceRegistry(mode="LOCAL").get_url("api", protocol="https") == "https://localhost:8000"

    def test_invalid_mode_falls_back_to_docker(self):
        assert ServiceRegistry(mode="mainframe").get_host("api") == "lsp-api-service"

    def test_env_port_override(self, monkeypatch):
        monkeypatch.setenv("SERVICE_CASE_STORE_PORT", "9100")
        assert ServiceRegistry(mode="local").get_port("case-store") == 9100

    def test_bad_env_port_is_ignored(self, monkeypatch):
        monkeypatch.setenv("SERVICE_NOTIFICATION_PORT", "eighty")
        assert ServiceRegistry(mode="local").get_port("notification") == 8020

    def test_unknown_service(self):
        with pytest.raises(ValueError):
            ServiceRegistry(mode="local").get_url("billing")

    def test_register_service(self):
        registry = ServiceRegistry(mode="local", custom_ports={"documents": 8030})
        registry.register_service("billing", 8040)

        services = registry.list_services()
        assert services["documents"] == "http://localhost:8030"
        assert services["billing"] == "http://localhost:8040"

    def test_global_instance_is_cached(self):
        reset_service_registry()
        try:
            assert get_service_registry() is get_service_registry()
        finally:
            reset_service_registry()
