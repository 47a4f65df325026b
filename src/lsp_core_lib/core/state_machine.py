"""Case lifecycle state machine.

Purpose: The single place where a CaseRecord changes status

Every operation takes a record and returns a new one; nothing is mutated.
The new record carries the status change, its side-effect fields, exactly one
appended timeline event, an incremented version and a fresh ``updated_at``,
all validated together before it is returned.

Lookup order for every action:
1. Transition table (status, action) -> status, else InvalidTransition
2. Argument validation, else ValidationError
3. Build the new record

Key Components:
- CaseAction: Named lifecycle actions
- TRANSITIONS: The explicit transition table
- CaseStateMachine: Pure operations, one per action
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from lsp_core_lib.models.analysis import AIAnalysis, MatchResult, Provenance
from lsp_core_lib.models.case import (
    AdvocateCandidate,
    CaseOutcome,
    CasePriority,
    CaseRecord,
    CaseStatus,
    OutcomeResult,
    generate_case_id,
)
from lsp_core_lib.models.exceptions import InvalidTransition, ValidationError
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
    WorkStarted,
)

logger = logging.getLogger(__name__)


class CaseAction(str, Enum):
    SUBMIT = "submit"
    BEGIN_ANALYSIS = "begin_analysis"
    COMPLETE_ANALYSIS = "complete_analysis"
    RECORD_RECOMMENDATIONS = "record_recommendations"
    HIRE = "hire"
    START = "start"
    HOLD = "hold"
    RESUME = "resume"
    RESOLVE = "resolve"
    CLOSE = "close"
    WITHDRAW = "withdraw"


def _build_table(
    rows: Iterable[Tuple[CaseAction, Tuple[CaseStatus, ...], CaseStatus]],
) -> Dict[Tuple[CaseStatus, CaseAction], CaseStatus]:
    table = {}
    for action, sources, target in rows:
        for source in sources:
            table[(source, action)] = target
    return table


# SUBMIT has no source status: it creates the record.
TRANSITIONS: Dict[Tuple[CaseStatus, CaseAction], CaseStatus] = _build_table([
    (CaseAction.BEGIN_ANALYSIS, (CaseStatus.SUBMITTED,), CaseStatus.ANALYZING),
    (
        CaseAction.COMPLETE_ANALYSIS,
        (CaseStatus.SUBMITTED, CaseStatus.ANALYZING),
        CaseStatus.PENDING_ADVOCATE,
    ),
    (
        CaseAction.RECORD_RECOMMENDATIONS,
        (CaseStatus.PENDING_ADVOCATE,),
        CaseStatus.PENDING_ADVOCATE,
    ),
    (CaseAction.HIRE, (CaseStatus.PENDING_ADVOCATE,), CaseStatus.ADVOCATE_ASSIGNED),
    (CaseAction.START, (CaseStatus.ADVOCATE_ASSIGNED,), CaseStatus.IN_PROGRESS),
    (CaseAction.HOLD, (CaseStatus.IN_PROGRESS,), CaseStatus.ON_HOLD),
    (CaseAction.RESUME, (CaseStatus.ON_HOLD,), CaseStatus.IN_PROGRESS),
    (CaseAction.RESOLVE, (CaseStatus.IN_PROGRESS, CaseStatus.ON_HOLD), CaseStatus.RESOLVED),
    (CaseAction.CLOSE, (CaseStatus.RESOLVED,), CaseStatus.CLOSED),
    (
        CaseAction.WITHDRAW,
        (
            CaseStatus.SUBMITTED,
            CaseStatus.ANALYZING,
            CaseStatus.PENDING_ADVOCATE,
            CaseStatus.ADVOCATE_ASSIGNED,
        ),
        CaseStatus.WITHDRAWN,
    ),
])


def allowed_actions(status: CaseStatus) -> Tuple[CaseAction, ...]:
    """Actions the table accepts from ``status``, in declaration order"""
    return tuple(action for (source, action) in TRANSITIONS if source == status)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CaseStateMachine:
    """
    Table-driven case lifecycle.

    Args:
        clock: Returns the current time; injectable for tests
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow

    # ------------------------------------------------------------------
    # Table lookup and record building
    # ------------------------------------------------------------------

    def ensure_allowed(self, case: CaseRecord, action: CaseAction) -> CaseStatus:
        """Target status for action, or InvalidTransition"""
        target = TRANSITIONS.get((case.status, action))
        if target is None:
            logger.info(
                f"Rejected '{action.value}' on case {case.id} in status '{case.status.value}'"
            )
            raise InvalidTransition(case.id, action.value, case.status.value)
        return target

    def _now(self, case: CaseRecord) -> datetime:
        # Timeline must stay ordered even if the clock steps backwards
        now = self._clock()
        latest = case.latest_event
        if latest is not None and now < latest.timestamp:
            return latest.timestamp
        return now

    def _evolve(
        self,
        case: CaseRecord,
        action: CaseAction,
        target: CaseStatus,
        event,
        now: datetime,
        **changes,
    ) -> CaseRecord:
        """Build the next record in one validated step"""
        data = dict(case)
        data.update(changes)
        data["status"] = target
        data["timeline"] = case.timeline + (event,)
        data["version"] = case.version + 1
        data["updated_at"] = now
        record = CaseRecord.model_validate(data)
        logger.info(
            f"Case {case.id}: '{action.value}' {case.status.value} -> {target.value} "
            f"(version {record.version})"
        )
        return record

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def submit(
        self,
        client_id: str,
        title: str,
        description: str,
        case_number: str,
        category: Optional[str] = None,
        case_id: Optional[str] = None,
    ) -> CaseRecord:
        """Create a new case in SUBMITTED with its case_submitted event"""
        now = self._clock()
        event = CaseSubmitted(
            description=f"Case submitted with number {case_number}",
            timestamp=now,
            actor_id=client_id,
            case_number=case_number,
        )
        record = CaseRecord(
            id=case_id or generate_case_id(),
            client_id=client_id,
            case_number=case_number,
            title=title,
            description=description,
            category=category,
            status=CaseStatus.SUBMITTED,
            timeline=(event,),
            created_at=now,
            updated_at=now,
        )
        logger.info(f"Case {record.id} submitted as {record.case_number}")
        return record

    def begin_analysis(self, case: CaseRecord, actor_id: Optional[str] = None) -> CaseRecord:
        target = self.ensure_allowed(case, CaseAction.BEGIN_ANALYSIS)
        now = self._now(case)
        event = AnalysisStarted(
            description="AI analysis started",
            timestamp=now,
            actor_id=actor_id,
        )
        return self._evolve(case, CaseAction.BEGIN_ANALYSIS, target, event, now)

    def complete_analysis(
        self,
        case: CaseRecord,
        analysis: AIAnalysis,
        provenance: Provenance = Provenance.AI,
        actor_id: Optional[str] = None,
    ) -> CaseRecord:
        """
        Store the analysis and move the case to PENDING_ADVOCATE.

        The analysis is stamped with ``analyzed_at`` and the case priority is
        derived from its urgency.
        """
        target = self.ensure_allowed(case, CaseAction.COMPLETE_ANALYSIS)
        now = self._now(case)
        stamped = analysis.model_copy(update={"analyzed_at": now})
        suffix = " (default assessment)" if provenance == Provenance.DEFAULT else ""
        event = AnalysisCompleted(
            description=(
                f"AI analysis completed: urgency {analysis.urgency_level.value}, "
                f"risk {analysis.risk_score}{suffix}"
            ),
            timestamp=now,
            actor_id=actor_id,
            urgency_level=analysis.urgency_level,
            risk_score=analysis.risk_score,
            provenance=provenance,
        )
        return self._evolve(
            case,
            CaseAction.COMPLETE_ANALYSIS,
            target,
            event,
            now,
            ai_analysis=stamped,
            priority=CasePriority.from_urgency(analysis.urgency_level),
        )

    def record_recommendations(
        self,
        case: CaseRecord,
        results: Sequence[MatchResult],
        actor_id: Optional[str] = None,
    ) -> CaseRecord:
        """Replace the recommended advocates wholesale"""
        target = self.ensure_allowed(case, CaseAction.RECORD_RECOMMENDATIONS)
        results = tuple(results)
        ids = [result.advocate_id for result in results]
        if len(set(ids)) != len(ids):
            raise ValidationError(
                "Recommendations contain duplicate advocate ids",
                case_id=case.id,
                action=CaseAction.RECORD_RECOMMENDATIONS.value,
            )

        now = self._now(case)
        event = AdvocatesRecommended(
            description=f"{len(results)} advocates recommended",
            timestamp=now,
            actor_id=actor_id,
            advocate_ids=tuple(ids),
        )
        return self._evolve(
            case,
            CaseAction.RECORD_RECOMMENDATIONS,
            target,
            event,
            now,
            recommended_advocates=results,
        )

    def hire(
        self,
        case: CaseRecord,
        advocate: AdvocateCandidate,
        actor_id: Optional[str] = None,
    ) -> CaseRecord:
        """
        Assign an advocate.

        Raises:
            InvalidTransition: Case not pending an advocate, or already has one
            ValidationError: Advocate is not accepting cases or not verified
        """
        target = self.ensure_allowed(case, CaseAction.HIRE)
        if case.advocate_id is not None:
            raise InvalidTransition(case.id, CaseAction.HIRE.value, case.status.value)
        if not advocate.is_eligible:
            raise ValidationError(
                f"Advocate {advocate.id} is not eligible for new cases",
                case_id=case.id,
                action=CaseAction.HIRE.value,
            )

        now = self._now(case)
        event = AdvocateAssigned(
            description=f"Advocate {advocate.name} assigned",
            timestamp=now,
            actor_id=actor_id,
            advocate_id=advocate.id,
        )
        return self._evolve(
            case,
            CaseAction.HIRE,
            target,
            event,
            now,
            advocate_id=advocate.id,
            assigned_at=now,
        )

    def start(self, case: CaseRecord, actor_id: Optional[str] = None) -> CaseRecord:
        target = self.ensure_allowed(case, CaseAction.START)
        now = self._now(case)
        event = WorkStarted(description="Advocate started work", timestamp=now, actor_id=actor_id)
        return self._evolve(case, CaseAction.START, target, event, now)

    def hold(self, case: CaseRecord, reason: str, actor_id: Optional[str] = None) -> CaseRecord:
        target = self.ensure_allowed(case, CaseAction.HOLD)
        reason = _require_reason(reason, case, CaseAction.HOLD)
        now = self._now(case)
        event = CaseOnHold(
            description=f"Case put on hold: {reason}",
            timestamp=now,
            actor_id=actor_id,
            reason=reason,
        )
        return self._evolve(case, CaseAction.HOLD, target, event, now)

    def resume(self, case: CaseRecord, actor_id: Optional[str] = None) -> CaseRecord:
        target = self.ensure_allowed(case, CaseAction.RESUME)
        now = self._now(case)
        event = CaseResumed(description="Work resumed", timestamp=now, actor_id=actor_id)
        return self._evolve(case, CaseAction.RESUME, target, event, now)

    def resolve(
        self,
        case: CaseRecord,
        result,
        description: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> CaseRecord:
        """
        Record the outcome and move the case to RESOLVED.

        Args:
            result: OutcomeResult or its string value (success, partial, failure)
        """
        target = self.ensure_allowed(case, CaseAction.RESOLVE)
        try:
            outcome = CaseOutcome(result=OutcomeResult(result), description=description)
        except ValueError as e:
            raise ValidationError(
                f"Invalid outcome: {result!r}",
                case_id=case.id,
                action=CaseAction.RESOLVE.value,
            ) from e

        now = self._now(case)
        event = CaseResolved(
            description=f"Case resolved: {outcome.result.value}",
            timestamp=now,
            actor_id=actor_id,
            outcome=outcome.result.value,
        )
        return self._evolve(
            case,
            CaseAction.RESOLVE,
            target,
            event,
            now,
            outcome=outcome,
            resolved_at=now,
        )

    def close(self, case: CaseRecord, actor_id: Optional[str] = None) -> CaseRecord:
        target = self.ensure_allowed(case, CaseAction.CLOSE)
        now = self._now(case)
        event = CaseClosed(description="Case closed", timestamp=now, actor_id=actor_id)
        return self._evolve(case, CaseAction.CLOSE, target, event, now, closed_date=now)

    def withdraw(self, case: CaseRecord, reason: str, actor_id: Optional[str] = None) -> CaseRecord:
        target = self.ensure_allowed(case, CaseAction.WITHDRAW)
        reason = _require_reason(reason, case, CaseAction.WITHDRAW)
        now = self._now(case)
        event = CaseWithdrawn(
            description=f"Case withdrawn: {reason}",
            timestamp=now,
            actor_id=actor_id,
            reason=reason,
        )
        return self._evolve(
            case,
            CaseAction.WITHDRAW,
            target,
            event,
            now,
            withdrawn_reason=reason,
        )


def _require_reason(reason: Optional[str], case: CaseRecord, action: CaseAction) -> str:
    if reason is None or not str(reason).strip():
        raise ValidationError(
            f"A reason is required to {action.value} a case",
            case_id=case.id,
            action=action.value,
        )
    return str(reason).strip()
