"""Timeline event models.

The timeline is the audit trail of a case. Each event kind carries only the
fields relevant to it; the union is discriminated on ``event``.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lsp_core_lib.models.analysis import Provenance, UrgencyLevel


class _TimelineEventBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    description: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    actor_id: Optional[str] = None


class CaseSubmitted(_TimelineEventBase):
    event: Literal["case_submitted"] = "case_submitted"
    case_number: str


class AnalysisStarted(_TimelineEventBase):
    event: Literal["analysis_started"] = "analysis_started"


class AnalysisCompleted(_TimelineEventBase):
    event: Literal["analysis_completed"] = "analysis_completed"
    urgency_level: UrgencyLevel
    risk_score: int = Field(ge=0, le=100)
    provenance: Provenance = Provenance.AI


class AdvocatesRecommended(_TimelineEventBase):
    event: Literal["advocates_recommended"] = "advocates_recommended"
    advocate_ids: Tuple[str, ...] = ()


class AdvocateAssigned(_TimelineEventBase):
    event: Literal["advocate_assigned"] = "advocate_assigned"
    advocate_id: str


class WorkStarted(_TimelineEventBase):
    event: Literal["work_started"] = "work_started"


class CaseOnHold(_TimelineEventBase):
    event: Literal["case_on_hold"] = "case_on_hold"
    reason: str = Field(min_length=1)


class CaseResumed(_TimelineEventBase):
    event: Literal["case_resumed"] = "case_resumed"


class CaseResolved(_TimelineEventBase):
    event: Literal["case_resolved"] = "case_resolved"
    outcome: str


class CaseClosed(_TimelineEventBase):
    event: Literal["case_closed"] = "case_closed"


class CaseWithdrawn(_TimelineEventBase):
    event: Literal["case_withdrawn"] = "case_withdrawn"
    reason: str = Field(min_length=1)


TimelineEvent = Annotated[
    Union[
        CaseSubmitted,
        AnalysisStarted,
        AnalysisCompleted,
        AdvocatesRecommended,
        AdvocateAssigned,
        WorkStarted,
        CaseOnHold,
        CaseResumed,
        CaseResolved,
        CaseClosed,
        CaseWithdrawn,
    ],
    Field(discriminator="event"),
]
