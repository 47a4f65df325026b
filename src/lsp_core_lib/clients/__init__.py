"""HTTP clients for collaborator services"""

from lsp_core_lib.clients.base import BaseServiceClient
from lsp_core_lib.clients.case_store_client import CaseStoreClient
from lsp_core_lib.clients.factory import create_case_store_client, create_notification_client
from lsp_core_lib.clients.notification_client import NotificationServiceClient

__all__ = [
    "BaseServiceClient",
    "CaseStoreClient",
    "NotificationServiceClient",
    "create_case_store_client",
    "create_notification_client",
]
