"""Pytest fixtures for lsp-core-lib unit tests."""

import json
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from lsp_core_lib.config.settings import reset_settings
from lsp_core_lib.core.analysis import AnalysisClient
from lsp_core_lib.core.matching import MatchingEngine
from lsp_core_lib.core.state_machine import CaseStateMachine
from lsp_core_lib.infrastructure.ai_log import InMemoryAICallLog
from lsp_core_lib.infrastructure.llm.providers import LLMResponse, reset_registry
from lsp_core_lib.infrastructure.notifications import InMemoryNotifier
from lsp_core_lib.infrastructure.persistence import (
    InMemoryCaseNumberSequence,
    InMemoryCaseRepository,
)
from lsp_core_lib.models.analysis import AIAnalysis
from lsp_core_lib.models.case import AdvocateCandidate, VerificationStatus
from lsp_core_lib.services.case_service import CaseLifecycleService


class StubRouter:
    """Stands in for LLMRouter: returns canned replies or raises."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    async def complete(self, prompt, system=None, model=None, max_tokens=1000, temperature=0.7):
        self.calls.append(
            {
                "prompt": prompt,
                "system": system,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return LLMResponse(content=content, provider="stub", model="stub-model", tokens_used=42)


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


ANALYSIS_REPLY = {
    "urgencyLevel": "critical",
    "riskScore": 85,
    "caseType": "Wrongful Termination",
    "requiredSpecialization": ["Employment Law"],
    "estimatedDuration": "3-6 months",
    "keyIssues": ["Retaliation", "Unpaid wages"],
    "recommendedActions": ["Preserve emails", "File complaint"],
    "reasoning": "Termination shortly after a protected complaint.",
}


@pytest.fixture(autouse=True)
def reset_globals():
    """Keep cached settings and the provider registry test-local."""
    reset_settings()
    reset_registry()
    yield
    reset_settings()
    reset_registry()


@pytest.fixture
def make_router():
    """StubRouter factory: make_router(replies=[...]) or make_router(error=...)."""
    return StubRouter


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def state_machine(clock) -> CaseStateMachine:
    return CaseStateMachine(clock=clock)


@pytest.fixture
def analysis_reply() -> str:
    return json.dumps(ANALYSIS_REPLY)


@pytest.fixture
def sample_analysis() -> AIAnalysis:
    return AIAnalysis.model_validate(ANALYSIS_REPLY)


@pytest.fixture
def low_urgency_analysis() -> AIAnalysis:
    return AIAnalysis.model_validate({**ANALYSIS_REPLY, "urgencyLevel": "low", "riskScore": 20})


@pytest.fixture
def advocates() -> List[AdvocateCandidate]:
    """Three eligible advocates."""
    return [
        AdvocateCandidate(
            id="adv_1",
            name="Asha Rao",
            specialization=frozenset({"Employment Law"}),
            experience_years=12,
            success_rate=88,
            rating=4.7,
            verification_status=VerificationStatus.VERIFIED,
        ),
        AdvocateCandidate(
            id="adv_2",
            name="Vikram Nair",
            specialization=frozenset({"Employment Law", "Civil Law"}),
            experience_years=7,
            success_rate=80,
            rating=4.4,
            verification_status=VerificationStatus.VERIFIED,
        ),
        AdvocateCandidate(
            id="adv_3",
            name="Meera Iyer",
            specialization=frozenset({"General Practice"}),
            experience_years=3,
            success_rate=70,
            rating=4.0,
            verification_status=VerificationStatus.VERIFIED,
        ),
    ]


@pytest.fixture
def unverified_advocate() -> AdvocateCandidate:
    return AdvocateCandidate(
        id="adv_pending",
        name="Not Yet Verified",
        verification_status=VerificationStatus.PENDING,
    )


@pytest.fixture
def call_log() -> InMemoryAICallLog:
    return InMemoryAICallLog()


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
def repository(advocates, unverified_advocate) -> InMemoryCaseRepository:
    return InMemoryCaseRepository(advocates=[*advocates, unverified_advocate])


@pytest.fixture
def make_service(repository, notifier, call_log, clock):
    """Build a CaseLifecycleService around the given stub routers."""

    def _make(analysis_router: StubRouter, matching_router: StubRouter) -> CaseLifecycleService:
        return CaseLifecycleService(
            repository=repository,
            sequence=InMemoryCaseNumberSequence(),
            analysis_client=AnalysisClient(router=analysis_router, call_log=call_log),
            matching_engine=MatchingEngine(router=matching_router, call_log=call_log),
            notifier=notifier,
            clock=clock,
        )

    return _make


@pytest.fixture
def submitted_case(state_machine):
    return state_machine.submit(
        client_id="client_1",
        title="Unfair dismissal",
        description="I was dismissed after reporting a safety issue.",
        case_number="LSP-2024-000042",
        category="Employment",
    )
