"""
Shared data models for the Legal Services Platform.

Pydantic models for cases, timeline events, AI analysis and matching, plus
the library's exception taxonomy.
"""

from lsp_core_lib.models.analysis import (
    DEFAULT_CASE_TYPE,
    DEFAULT_MATCH_REASON,
    DEFAULT_REASONING,
    AIAnalysis,
    AICallRecord,
    AICallStatus,
    AICallType,
    AnalysisOutcome,
    AssistantReply,
    MatchResult,
    Provenance,
    RankingOutcome,
    UrgencyLevel,
    default_analysis,
)
from lsp_core_lib.models.case import (
    AdvocateCandidate,
    CaseOutcome,
    CasePriority,
    CaseRecord,
    CaseStatus,
    OutcomeResult,
    VerificationStatus,
    eligible_candidates,
    format_case_number,
)
from lsp_core_lib.models.exceptions import (
    CaseNotFoundError,
    ConcurrentModificationError,
    ExternalServiceError,
    ExternalServiceTimeout,
    InvalidTransition,
    LSPCoreError,
    MalformedAIResponse,
    ValidationError,
)
from lsp_core_lib.models.timeline import (
    AdvocateAssigned,
    AdvocatesRecommended,
    AnalysisCompleted,
    AnalysisStarted,
    CaseClosed,
    CaseOnHold,
    CaseResolved,
    CaseResumed,
    CaseSubmitted,
    CaseWithdrawn,
    TimelineEvent,
    WorkStarted,
)

__all__ = [
    # Analysis & matching
    "DEFAULT_CASE_TYPE", "DEFAULT_MATCH_REASON", "DEFAULT_REASONING",
    "AIAnalysis", "AICallRecord", "AICallStatus", "AICallType",
    "AnalysisOutcome", "AssistantReply", "MatchResult", "Provenance",
    "RankingOutcome", "UrgencyLevel", "default_analysis",
    # Case
    "AdvocateCandidate", "CaseOutcome", "CasePriority", "CaseRecord",
    "CaseStatus", "OutcomeResult", "VerificationStatus",
    "eligible_candidates", "format_case_number",
    # Exceptions
    "CaseNotFoundError", "ConcurrentModificationError", "ExternalServiceError",
    "ExternalServiceTimeout", "InvalidTransition", "LSPCoreError",
    "MalformedAIResponse", "ValidationError",
    # Timeline
    "AdvocateAssigned", "AdvocatesRecommended", "AnalysisCompleted",
    "AnalysisStarted", "CaseClosed", "CaseOnHold", "CaseResolved",
    "CaseResumed", "CaseSubmitted", "CaseWithdrawn", "TimelineEvent",
    "WorkStarted",
]
