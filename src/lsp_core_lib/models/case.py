"""Case data models - Legal case lifecycle.

This module defines the case entity tracked from submission to closure and
the read-only advocate projection consumed by matching.

Key Models:
- CaseRecord: Root case entity (frozen; transitions produce new values)
- CaseStatus: Lifecycle status (SUBMITTED → ... → CLOSED | WITHDRAWN)
- AdvocateCandidate: Advocate projection used for ranking and hiring
- CaseOutcome: Result recorded when a case is resolved

Architecture:
- Records are immutable; CaseStateMachine builds every new version in one step
- Timeline is append-only and is the sole audit trail of state changes
- Repository abstraction (no direct database imports)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from lsp_core_lib.models.analysis import AIAnalysis, MatchResult, UrgencyLevel
from lsp_core_lib.models.timeline import TimelineEvent


CASE_NUMBER_PREFIX = "LSP"
CASE_NUMBER_PATTERN = r"^LSP-\d{4}-\d{6}$"
MAX_CASE_SEQUENCE = 999_999


def format_case_number(year: int, sequence: int) -> str:
    """Format a human-readable case number, e.g. LSP-2024-000042."""
    if not 1 <= sequence <= MAX_CASE_SEQUENCE:
        raise ValueError(f"Case sequence out of range: {sequence}")
    if not 1000 <= year <= 9999:
        raise ValueError(f"Case year must have 4 digits: {year}")
    return f"{CASE_NUMBER_PREFIX}-{year:04d}-{sequence:06d}"


def generate_case_id() -> str:
    return f"case_{uuid4().hex[:12]}"


# ============================================================
# Status & Lifecycle
# ============================================================

class CaseStatus(str, Enum):
    """
    Case lifecycle status.

    Lifecycle Flow:
      SUBMITTED → ANALYZING → PENDING_ADVOCATE → ADVOCATE_ASSIGNED → IN_PROGRESS
                                                   IN_PROGRESS ⇄ ON_HOLD
      IN_PROGRESS | ON_HOLD → RESOLVED → CLOSED (terminal)
      SUBMITTED .. ADVOCATE_ASSIGNED → WITHDRAWN (terminal)
    """

    SUBMITTED = "submitted"
    """Initial state. Case number assigned, awaiting analysis."""

    ANALYZING = "analyzing"
    """Classification requested from the model."""

    PENDING_ADVOCATE = "pending_advocate"
    """
    Analysis stored, waiting for the client to hire an advocate.

    Recommendations may be refreshed any number of times in this state.
    """

    ADVOCATE_ASSIGNED = "advocate_assigned"
    """An advocate has been hired; work has not started."""

    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"

    RESOLVED = "resolved"
    """Work finished with a recorded outcome (success, partial or failure)."""

    CLOSED = "closed"
    """TERMINAL STATE: resolved case archived."""

    WITHDRAWN = "withdrawn"
    """TERMINAL STATE: client withdrew before work started."""

    @property
    def is_terminal(self) -> bool:
        """Check if this status is terminal"""
        return self in (CaseStatus.CLOSED, CaseStatus.WITHDRAWN)

    @property
    def is_active(self) -> bool:
        return self in (CaseStatus.ADVOCATE_ASSIGNED, CaseStatus.IN_PROGRESS, CaseStatus.ON_HOLD)


class CasePriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def from_urgency(cls, urgency: UrgencyLevel) -> "CasePriority":
        """Map an analysed urgency level onto the case priority scale"""
        mapping = {
            UrgencyLevel.LOW: cls.LOW,
            UrgencyLevel.MEDIUM: cls.NORMAL,
            UrgencyLevel.HIGH: cls.HIGH,
            UrgencyLevel.CRITICAL: cls.URGENT,
        }
        return mapping[UrgencyLevel(urgency)]


class OutcomeResult(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class CaseOutcome(BaseModel):
    """Result recorded when a case is resolved"""

    model_config = ConfigDict(frozen=True)

    result: OutcomeResult
    description: Optional[str] = Field(default=None, max_length=2000)


# ============================================================
# Advocates
# ============================================================

class AdvocateCandidate(BaseModel):
    """
    Read-only advocate projection consumed by matching and hiring.

    Only candidates that accept new cases and are verified are eligible.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(min_length=1)
    name: str = "Unknown"
    specialization: FrozenSet[str] = Field(default_factory=frozenset)
    experience_years: int = Field(default=0, ge=0)
    success_rate: float = Field(default=0.0, ge=0, le=100)
    rating: float = Field(default=0.0, ge=0, le=5)
    is_accepting_cases: bool = True
    verification_status: VerificationStatus = VerificationStatus.PENDING

    @property
    def is_eligible(self) -> bool:
        return self.is_accepting_cases and self.verification_status == VerificationStatus.VERIFIED

    def to_prompt_dict(self) -> dict:
        """Reduced projection sent to the matching model"""
        return {
            "id": self.id,
            "name": self.name,
            "specialization": sorted(self.specialization),
            "experience": self.experience_years,
            "successRate": self.success_rate,
            "rating": self.rating,
        }


def eligible_candidates(candidates) -> list:
    """Filter to candidates that may be recommended or hired, keeping order"""
    return [candidate for candidate in candidates if candidate.is_eligible]


# ============================================================
# Case
# ============================================================

class CaseRecord(BaseModel):
    """
    Root case entity.

    Records are frozen. A status change, its side-effect fields and the
    timeline event it produces are always written together into a new value.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Core Identity
    id: str = Field(default_factory=generate_case_id, min_length=1)
    client_id: str = Field(min_length=1, max_length=255)
    case_number: str = Field(pattern=CASE_NUMBER_PATTERN)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=10000)
    category: Optional[str] = None

    # Status
    status: CaseStatus = CaseStatus.SUBMITTED
    priority: CasePriority = CasePriority.NORMAL

    # Analysis & matching
    ai_analysis: Optional[AIAnalysis] = None
    recommended_advocates: Tuple[MatchResult, ...] = ()

    # Assignment
    advocate_id: Optional[str] = None
    assigned_at: Optional[datetime] = None

    # Closure
    outcome: Optional[CaseOutcome] = None
    resolved_at: Optional[datetime] = None
    closed_date: Optional[datetime] = None
    withdrawn_reason: Optional[str] = None

    # Audit trail
    timeline: Tuple[TimelineEvent, ...] = ()

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = Field(default=1, ge=1)

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v):
        if not v.strip():
            raise ValueError("Case title cannot be blank")
        return v.strip()

    @model_validator(mode="after")
    def validate_assignment_consistency(self) -> "CaseRecord":
        """An advocate id and its assignment timestamp are set together."""
        if (self.advocate_id is None) != (self.assigned_at is None):
            raise ValueError("advocate_id and assigned_at must be set together")
        return self

    @model_validator(mode="after")
    def validate_timeline_ordering(self) -> "CaseRecord":
        for earlier, later in zip(self.timeline, self.timeline[1:]):
            if earlier.timestamp > later.timestamp:
                raise ValueError("Timeline must be chronologically ordered")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def latest_event(self) -> Optional[TimelineEvent]:
        return self.timeline[-1] if self.timeline else None
