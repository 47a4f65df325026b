"""HTTP client for the notification service."""

from typing import Optional

import httpx

from lsp_core_lib.clients.base import BaseServiceClient, collaborator_retry
from lsp_core_lib.infrastructure.notifications import Notification


class NotificationServiceClient(BaseServiceClient):
    """Notifier that posts notifications to the notification service.

    Errors propagate to the caller; CaseLifecycleService sends notifications
    in the background and only logs them.
    """

    def __init__(
        self,
        base_url: str = "http://lsp-notification-service:8020",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    @collaborator_retry
    async def notify(self, notification: Notification) -> None:
        async with self._get_client() as client:
            response = await client.post(
                f"{self.base_url}/api/v1/notifications",
                json=notification.model_dump(mode="json", by_alias=True),
                headers=self._headers(user_id=notification.recipient_id),
            )
            response.raise_for_status()
