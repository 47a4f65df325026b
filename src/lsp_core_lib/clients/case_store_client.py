"""HTTP client for the case store service."""

import logging
from typing import Any, List, Optional

import httpx

from lsp_core_lib.clients.base import BaseServiceClient, collaborator_retry
from lsp_core_lib.models.case import AdvocateCandidate, CaseRecord, eligible_candidates
from lsp_core_lib.models.exceptions import (
    CaseNotFoundError,
    ConcurrentModificationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class CaseStoreClient(BaseServiceClient):
    """Async HTTP client implementing CaseRepository and CaseNumberSequence.

    Records travel as camelCase JSON. Updates carry the expected version in an
    If-Match header; the store answers 409 when the stored version differs.

    Usage:
        client = CaseStoreClient(base_url="http://lsp-case-store-service:8010")
        case = await client.get("case_123456789abc")
    """

    def __init__(
        self,
        base_url: str = "http://lsp-case-store-service:8010",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        user_id: Optional[str] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self.user_id = user_id

    async def _request(
        self,
        method: str,
        path: str,
        extra_headers: Optional[dict] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Issue one request; 5xx responses raise"""
        headers = self._headers(user_id=self.user_id)
        headers.update(extra_headers or {})
        async with self._get_client() as client:
            response = await client.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                **kwargs,
            )
        if response.status_code >= 500:
            response.raise_for_status()
        return response

    @collaborator_retry
    async def _send(
        self,
        method: str,
        path: str,
        extra_headers: Optional[dict] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Retrying request, for idempotent GET and versioned PUT only"""
        return await self._request(method, path, extra_headers=extra_headers, **kwargs)

    @staticmethod
    def _dump(record: CaseRecord) -> dict:
        return record.model_dump(mode="json", by_alias=True)

    async def create(self, record: CaseRecord) -> CaseRecord:
        """Create a case.

        Raises:
            ValidationError: If the store reports a conflicting id or case number
        """
        response = await self._request("POST", "/api/v1/cases", json=self._dump(record))
        if response.status_code == 409:
            raise ValidationError(
                f"Case store rejected case {record.id}: {response.text}", case_id=record.id
            )
        response.raise_for_status()
        return CaseRecord.model_validate(response.json())

    async def get(self, case_id: str) -> Optional[CaseRecord]:
        response = await self._send("GET", f"/api/v1/cases/{case_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return CaseRecord.model_validate(response.json())

    async def update(self, record: CaseRecord, expected_version: int) -> CaseRecord:
        """Store a new version of a case.

        Raises:
            CaseNotFoundError: If the store does not know the case
            ConcurrentModificationError: If the stored version is not expected_version
        """
        response = await self._send(
            "PUT",
            f"/api/v1/cases/{record.id}",
            json=self._dump(record),
            extra_headers={"If-Match": str(expected_version)},
        )
        if response.status_code == 404:
            raise CaseNotFoundError(record.id)
        if response.status_code == 409:
            body = _json_or_empty(response)
            logger.warning(f"Version conflict updating case {record.id}: expected {expected_version}")
            raise ConcurrentModificationError(
                record.id, expected_version, int(body.get("actualVersion", -1))
            )
        if response.status_code == 422:
            raise ValidationError(
                f"Case store rejected update: {response.text}", case_id=record.id
            )
        response.raise_for_status()
        return CaseRecord.model_validate(response.json())

    async def list_eligible_advocates(self) -> List[AdvocateCandidate]:
        response = await self._send("GET", "/api/v1/advocates", params={"eligible": "true"})
        response.raise_for_status()
        advocates = [AdvocateCandidate.model_validate(item) for item in response.json()]
        return eligible_candidates(advocates)

    async def get_advocate(self, advocate_id: str) -> Optional[AdvocateCandidate]:
        response = await self._send("GET", f"/api/v1/advocates/{advocate_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return AdvocateCandidate.model_validate(response.json())

    async def next_value(self, year: int) -> int:
        """Next case-number sequence value for ``year``"""
        response = await self._request("POST", f"/api/v1/sequences/case-number/{year}")
        response.raise_for_status()
        return int(response.json()["value"])


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
