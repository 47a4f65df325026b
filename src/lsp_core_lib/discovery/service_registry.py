"""Collaborator service discovery.

The lifecycle talks to a case store and a notification service. When their
URLs are not configured explicitly, clients.factory asks this registry,
which derives them from the deployment mode:

- docker:     http://lsp-case-store-service:8010
- kubernetes: http://lsp-case-store-service.<namespace>.svc.cluster.local:8010
- local:      http://localhost:8010
"""

import logging
import os
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)

HOST_TEMPLATE = "lsp-{service}-service"
DEFAULT_NAMESPACE = "legal-services"


class DeploymentMode(Enum):
    DOCKER = "docker"
    KUBERNETES = "kubernetes"
    LOCAL = "local"


def _port_env_key(service_name: str) -> str:
    return f"SERVICE_{service_name.upper().replace('-', '_')}_PORT"


class ServiceRegistry:
    """Maps platform service names to base URLs.

    Environment Variables:
        DEPLOYMENT_MODE: "docker" (default), "kubernetes" or "local"
        K8S_NAMESPACE: Kubernetes namespace (default: "legal-services")
        SERVICE_<NAME>_PORT: Port override, e.g. SERVICE_CASE_STORE_PORT=9010
    """

    DEFAULT_PORTS: Dict[str, int] = {
        "api": 8000,
        "case-store": 8010,
        "notification": 8020,
    }

    def __init__(
        self,
        mode: Optional[str] = None,
        namespace: Optional[str] = None,
        custom_ports: Optional[Dict[str, int]] = None,
    ):
        self.mode = self._parse_mode(mode or os.getenv("DEPLOYMENT_MODE", "docker"))
        self.namespace = namespace or os.getenv("K8S_NAMESPACE", DEFAULT_NAMESPACE)

        self.services = {**self.DEFAULT_PORTS, **(custom_ports or {})}
        self._apply_port_overrides()

        logger.info(
            f"ServiceRegistry initialized: mode={self.mode.value}, "
            f"namespace={self.namespace}, services={sorted(self.services)}"
        )

    @staticmethod
    def _parse_mode(value: str) -> DeploymentMode:
        try:
            return DeploymentMode(value.lower())
        except ValueError:
            logger.warning(f"Invalid DEPLOYMENT_MODE '{value}', defaulting to 'docker'")
            return DeploymentMode.DOCKER

    def _apply_port_overrides(self) -> None:
        for service_name in self.services:
            env_key = _port_env_key(service_name)
            raw = os.getenv(env_key)
            if not raw:
                continue
            try:
                self.services[service_name] = int(raw)
            except ValueError:
                logger.warning(f"Ignoring non-numeric port in {env_key}: {raw}")

    def _require(self, service_name: str) -> None:
        if service_name not in self.services:
            raise ValueError(
                f"Unknown service: {service_name}. Known services: {sorted(self.services)}"
            )

    def get_host(self, service_name: str) -> str:
        self._require(service_name)
        if self.mode == DeploymentMode.LOCAL:
            return "localhost"
        host = HOST_TEMPLATE.format(service=service_name)
        if self.mode == DeploymentMode.KUBERNETES:
            return f"{host}.{self.namespace}.svc.cluster.local"
        return host

    def get_port(self, service_name: str) -> int:
        self._require(service_name)
        return self.services[service_name]

    def get_url(self, service_name: str, protocol: str = "http") -> str:
        """Base URL for a service.

        Raises:
            ValueError: If the service name is unknown

        Example:
            >>> ServiceRegistry(mode="local").get_url("notification")
            'http://localhost:8020'
        """
        url = f"{protocol}://{self.get_host(service_name)}:{self.get_port(service_name)}"
        logger.debug(f"Resolved {service_name} -> {url}")
        return url

    def register_service(self, service_name: str, port: int) -> None:
        self.services[service_name] = port
        logger.info(f"Registered service: {service_name} -> port {port}")

    def list_services(self) -> Dict[str, str]:
        return {name: self.get_url(name) for name in self.services}


_registry_instance: Optional[ServiceRegistry] = None


def get_service_registry() -> ServiceRegistry:
    """Process-wide registry, built on first use."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = ServiceRegistry()
    return _registry_instance


def reset_service_registry() -> None:
    global _registry_instance
    _registry_instance = None
