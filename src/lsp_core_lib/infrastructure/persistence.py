"""Persistence collaborator protocols and in-memory implementations.

The lifecycle service only depends on the protocols below. The in-memory
implementations back tests and single-process deployments; CaseStoreClient
(lsp_core_lib.clients) implements CaseRepository against the case store
service.

Updates are optimistic: the caller passes the version it read, and the
repository refuses to overwrite a newer record.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from lsp_core_lib.models.case import (
    MAX_CASE_SEQUENCE,
    AdvocateCandidate,
    CaseRecord,
    eligible_candidates,
)
from lsp_core_lib.models.exceptions import (
    CaseNotFoundError,
    ConcurrentModificationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class CaseRepository(Protocol):
    async def create(self, record: CaseRecord) -> CaseRecord:
        ...

    async def get(self, case_id: str) -> Optional[CaseRecord]:
        ...

    async def update(self, record: CaseRecord, expected_version: int) -> CaseRecord:
        ...

    async def list_eligible_advocates(self) -> List[AdvocateCandidate]:
        ...

    async def get_advocate(self, advocate_id: str) -> Optional[AdvocateCandidate]:
        ...


@runtime_checkable
class CaseNumberSequence(Protocol):
    async def next_value(self, year: int) -> int:
        ...


class InMemoryCaseRepository:
    """Dict-backed CaseRepository"""

    def __init__(self, advocates: Optional[Iterable[AdvocateCandidate]] = None):
        self._cases: Dict[str, CaseRecord] = {}
        self._advocates: Dict[str, AdvocateCandidate] = {}
        for advocate in advocates or ():
            self.add_advocate(advocate)

    def add_advocate(self, advocate: AdvocateCandidate) -> None:
        self._advocates[advocate.id] = advocate

    async def create(self, record: CaseRecord) -> CaseRecord:
        if record.id in self._cases:
            raise ValidationError(f"Case {record.id} already exists", case_id=record.id)
        if any(case.case_number == record.case_number for case in self._cases.values()):
            raise ValidationError(
                f"Case number {record.case_number} already in use", case_id=record.id
            )
        self._cases[record.id] = record
        return record

    async def get(self, case_id: str) -> Optional[CaseRecord]:
        return self._cases.get(case_id)

    async def update(self, record: CaseRecord, expected_version: int) -> CaseRecord:
        """
        Store a new version of a case.

        Raises:
            CaseNotFoundError: Unknown case id
            ConcurrentModificationError: Stored version differs from expected_version
            ValidationError: The update changes the case number
        """
        current = self._cases.get(record.id)
        if current is None:
            raise CaseNotFoundError(record.id)
        if current.version != expected_version:
            raise ConcurrentModificationError(record.id, expected_version, current.version)
        if current.case_number != record.case_number:
            raise ValidationError("Case number cannot change", case_id=record.id)
        self._cases[record.id] = record
        return record

    async def list_eligible_advocates(self) -> List[AdvocateCandidate]:
        return eligible_candidates(self._advocates.values())

    async def get_advocate(self, advocate_id: str) -> Optional[AdvocateCandidate]:
        return self._advocates.get(advocate_id)

    def __len__(self) -> int:
        return len(self._cases)


class InMemoryCaseNumberSequence:
    """Per-year counter starting at 1"""

    def __init__(self):
        self._counters: Dict[int, int] = defaultdict(int)
        self._lock = asyncio.Lock()

    async def next_value(self, year: int) -> int:
        async with self._lock:
            value = self._counters[year] + 1
            if value > MAX_CASE_SEQUENCE:
                raise ValidationError(f"Case number sequence exhausted for {year}")
            self._counters[year] = value
            return value
