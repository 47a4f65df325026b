"""Base service client for calls to collaborator services."""

import json
import logging
from typing import Optional

import httpx

from lsp_core_lib.utils.resilience import create_custom_retry

logger = logging.getLogger(__name__)

# Transport-level failures and 5xx responses are retried; 4xx are not.
collaborator_retry = create_custom_retry(
    max_attempts=3,
    min_wait=1,
    max_wait=4,
    retry_on=(httpx.TransportError, httpx.HTTPStatusError),
    only_server_errors=True,
)


class BaseServiceClient:
    """Base class for collaborator HTTP clients.

    Services call each other directly. The acting user is propagated via
    X-User-* headers.

    Usage:
        class CaseStoreClient(BaseServiceClient):
            async def get(self, case_id: str) -> Optional[CaseRecord]:
                async with self._get_client() as client:
                    response = await client.get(f"{self.base_url}/api/v1/cases/{case_id}")
                    ...
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize service client.

        Args:
            base_url: Service base URL (e.g., http://lsp-case-store-service:8010)
            timeout: Request timeout in seconds (default: 10.0)
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        logger.info(f"Initialized {self.__class__.__name__} with base_url={base_url}")

    def _headers(
        self,
        user_id: Optional[str] = None,
        user_roles: Optional[list] = None,
        correlation_id: Optional[str] = None
    ) -> dict:
        """Generate request headers with user context."""
        headers = {
            "Content-Type": "application/json",
        }

        if user_id:
            headers["X-User-ID"] = user_id

        if user_roles:
            headers["X-User-Roles"] = json.dumps(user_roles)

        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id

        return headers

    def _get_client(self) -> httpx.AsyncClient:
        """Get HTTP client instance with configured timeout.

        Returns:
            Configured AsyncClient ready for use with async context manager
        """
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def close(self):
        """Close any persistent connections.

        Override this if your client maintains a persistent httpx.AsyncClient.
        """
        pass
