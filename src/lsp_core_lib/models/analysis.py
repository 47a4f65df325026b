"""AI analysis and matching value objects.

AIAnalysis and MatchResult are frozen and have no defaults for their
classification fields: a value is either fully populated from a model reply
or it is the deterministic default, never a mix. The outcome wrappers carry
the provenance of the value and the call record for the AI log.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DEFAULT_CASE_TYPE = "General Legal Matter"
DEFAULT_MATCH_REASON = "Default matching applied"
DEFAULT_REASONING = "AI analysis unavailable, default assessment provided"


class UrgencyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def is_urgent(self) -> bool:
        """High and critical cases raise an urgent alert"""
        return self in (UrgencyLevel.HIGH, UrgencyLevel.CRITICAL)


class Provenance(str, Enum):
    """Where a value came from"""

    AI = "ai"
    DEFAULT = "default"


class AICallType(str, Enum):
    CASE_ANALYSIS = "case_analysis"
    ADVOCATE_MATCHING = "advocate_matching"
    CHAT_RESPONSE = "chat_response"


class AICallStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


class AIAnalysis(BaseModel):
    """Structured classification of a case"""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    urgency_level: UrgencyLevel
    risk_score: int = Field(ge=0, le=100)
    case_type: str
    required_specialization: Tuple[str, ...]
    estimated_duration: str
    key_issues: Tuple[str, ...]
    recommended_actions: Tuple[str, ...]
    reasoning: str
    analyzed_at: Optional[datetime] = None


def default_analysis(category: Optional[str] = None) -> AIAnalysis:
    """Deterministic assessment used whenever the model cannot be trusted"""
    return AIAnalysis(
        urgency_level=UrgencyLevel.MEDIUM,
        risk_score=50,
        case_type=category or DEFAULT_CASE_TYPE,
        required_specialization=("General Practice",),
        estimated_duration="1-3 months",
        key_issues=("Requires manual review",),
        recommended_actions=("Consult with a legal professional",),
        reasoning=DEFAULT_REASONING,
    )


class MatchResult(BaseModel):
    """A scored advocate recommendation for one case"""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    advocate_id: str = Field(min_length=1)
    match_score: int = Field(ge=0, le=100)
    reason: str
    recommended_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AICallRecord(BaseModel):
    """One external model call, as handed to the AI call log"""

    model_config = ConfigDict(frozen=True)

    call_type: AICallType
    case_id: Optional[str] = None
    input: Any
    output: Any = None
    model: Optional[str] = None
    provider: Optional[str] = None
    tokens_used: int = 0
    latency_ms: int = 0
    status: AICallStatus = AICallStatus.SUCCESS
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of AnalysisClient.analyze()"""

    analysis: AIAnalysis
    provenance: Provenance
    call: AICallRecord

    @property
    def is_fallback(self) -> bool:
        return self.provenance == Provenance.DEFAULT


@dataclass(frozen=True)
class RankingOutcome:
    """Result of MatchingEngine.rank()"""

    results: Tuple[MatchResult, ...]
    provenance: Provenance
    call: Optional[AICallRecord] = None

    @property
    def is_fallback(self) -> bool:
        return self.provenance == Provenance.DEFAULT

    @property
    def advocate_ids(self) -> List[str]:
        return [result.advocate_id for result in self.results]


@dataclass(frozen=True)
class AssistantReply:
    """Result of LegalAssistant.reply()"""

    content: str
    provenance: Provenance
    call: AICallRecord = field(repr=False)
