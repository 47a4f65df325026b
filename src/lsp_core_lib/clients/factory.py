"""Build collaborator clients from settings.

An explicit URL in Settings wins; otherwise the service is resolved through
the deployment-mode ServiceRegistry.
"""

import logging
from typing import Optional

import httpx

from lsp_core_lib.clients.case_store_client import CaseStoreClient
from lsp_core_lib.clients.notification_client import NotificationServiceClient
from lsp_core_lib.config.settings import Settings, get_settings
from lsp_core_lib.discovery import ServiceRegistry, get_service_registry

logger = logging.getLogger(__name__)

CASE_STORE_SERVICE = "case-store"
NOTIFICATION_SERVICE = "notification"


def _resolve_url(
    configured: Optional[str], service_name: str, registry: Optional[ServiceRegistry]
) -> str:
    if configured:
        return configured
    url = (registry or get_service_registry()).get_url(service_name)
    logger.info(f"No URL configured for {service_name}, discovered {url}")
    return url


def create_case_store_client(
    settings: Optional[Settings] = None,
    registry: Optional[ServiceRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    user_id: Optional[str] = None,
) -> CaseStoreClient:
    settings = settings or get_settings()
    return CaseStoreClient(
        base_url=_resolve_url(settings.case_store_url, CASE_STORE_SERVICE, registry),
        timeout=settings.collaborator_timeout,
        transport=transport,
        user_id=user_id,
    )


def create_notification_client(
    settings: Optional[Settings] = None,
    registry: Optional[ServiceRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> NotificationServiceClient:
    settings = settings or get_settings()
    return NotificationServiceClient(
        base_url=_resolve_url(settings.notification_service_url, NOTIFICATION_SERVICE, registry),
        timeout=settings.collaborator_timeout,
        transport=transport,
    )
