"""Case lifecycle service.

Purpose: Run the submission → analysis → matching → hire → resolution pipeline
against the persistence and notification collaborators.

Every read-modify-write on a case happens under that case's asyncio.Lock and
is persisted with the version it was read at, so concurrent writers on the
same case either serialize or fail with ConcurrentModificationError. Model
calls run outside the lock; their results are complete values before a
transition is applied.

Notifications are sent as background tasks after the transition has been
persisted. A failed notification is logged and never undoes the transition.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Dict, List, Optional, Set

from lsp_core_lib.core.analysis import AnalysisClient
from lsp_core_lib.core.matching import MatchingEngine, shortlist_candidates
from lsp_core_lib.core.recommendations import RecommendationStore
from lsp_core_lib.core.state_machine import CaseAction, CaseStateMachine
from lsp_core_lib.infrastructure.notifications import Notification, NotificationKind, Notifier
from lsp_core_lib.infrastructure.persistence import CaseNumberSequence, CaseRepository
from lsp_core_lib.models.analysis import MatchResult, RankingOutcome
from lsp_core_lib.models.case import (
    CasePriority,
    CaseRecord,
    CaseStatus,
    eligible_candidates,
    format_case_number,
)
from lsp_core_lib.models.exceptions import CaseNotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CaseLifecycleService:
    """Orchestrates the case lifecycle over pluggable collaborators"""

    def __init__(
        self,
        repository: CaseRepository,
        sequence: CaseNumberSequence,
        analysis_client: AnalysisClient,
        matching_engine: MatchingEngine,
        notifier: Optional[Notifier] = None,
        recommendations: Optional[RecommendationStore] = None,
        state_machine: Optional[CaseStateMachine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.sequence = sequence
        self.analysis_client = analysis_client
        self.matching_engine = matching_engine
        self.notifier = notifier
        self.recommendations = recommendations or RecommendationStore()
        self._clock = clock or _utcnow
        self.state_machine = state_machine or CaseStateMachine(clock=self._clock)

        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._pending_notifications: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _case_lock(self, case_id: str) -> AsyncIterator[None]:
        """Hold the case's lock; the lock is dropped once nobody holds or awaits it"""
        lock = self._locks.setdefault(case_id, asyncio.Lock())
        self._lock_users[case_id] = self._lock_users.get(case_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[case_id] -= 1
            if self._lock_users[case_id] == 0:
                del self._lock_users[case_id]
                del self._locks[case_id]

    async def _load(self, case_id: str) -> CaseRecord:
        record = await self.repository.get(case_id)
        if record is None:
            raise CaseNotFoundError(case_id)
        return record

    async def _apply(self, case_id: str, transition: Callable[[CaseRecord], CaseRecord]) -> CaseRecord:
        """Load, transition and persist one case under its lock"""
        async with self._case_lock(case_id):
            current = await self._load(case_id)
            updated = transition(current)
            return await self.repository.update(updated, expected_version=current.version)

    def _dispatch(self, notification: Notification) -> None:
        if self.notifier is None:
            return
        task = asyncio.create_task(self._send(notification))
        self._pending_notifications.add(task)
        task.add_done_callback(self._pending_notifications.discard)

    async def _send(self, notification: Notification) -> None:
        try:
            await self.notifier.notify(notification)
        except Exception as e:
            logger.warning(
                f"Notification {notification.kind.value} for case {notification.case_id} failed: {e}"
            )

    async def drain_notifications(self) -> None:
        """Wait for all notifications dispatched so far"""
        while self._pending_notifications:
            await asyncio.gather(*list(self._pending_notifications))

    # ------------------------------------------------------------------
    # Submission & analysis
    # ------------------------------------------------------------------

    async def submit_case(
        self,
        client_id: str,
        title: str,
        description: str,
        category: Optional[str] = None,
    ) -> CaseRecord:
        """Assign a case number and persist a new SUBMITTED case"""
        year = self._clock().year
        sequence_value = await self.sequence.next_value(year)
        record = self.state_machine.submit(
            client_id=client_id,
            title=title,
            description=description,
            case_number=format_case_number(year, sequence_value),
            category=category,
        )
        return await self.repository.create(record)

    async def analyze_case(self, case_id: str, actor_id: Optional[str] = None) -> CaseRecord:
        """
        Classify a case and move it to PENDING_ADVOCATE.

        A SUBMITTED case is first moved to ANALYZING. The model call itself
        never fails; a failed call stores the default analysis.
        """
        async with self._case_lock(case_id):
            case = await self._load(case_id)
            self.state_machine.ensure_allowed(case, CaseAction.COMPLETE_ANALYSIS)
            if case.status == CaseStatus.SUBMITTED:
                started = self.state_machine.begin_analysis(case, actor_id=actor_id)
                case = await self.repository.update(started, expected_version=case.version)

        outcome = await self.analysis_client.analyze(
            case.title, case.description, case.category, case_id=case.id
        )

        record = await self._apply(
            case_id,
            lambda current: self.state_machine.complete_analysis(
                current, outcome.analysis, outcome.provenance, actor_id=actor_id
            ),
        )

        if outcome.analysis.urgency_level.is_urgent:
            self._dispatch(
                Notification(
                    kind=NotificationKind.URGENT_ALERT,
                    case_id=record.id,
                    recipient_id=record.client_id,
                    title="Urgent Case Detected",
                    message=(
                        f'Your case "{record.title}" has been marked as '
                        f"{outcome.analysis.urgency_level.value} urgency. "
                        "We recommend hiring an advocate as soon as possible."
                    ),
                    priority=CasePriority.URGENT,
                )
            )
        return record

    # ------------------------------------------------------------------
    # Matching & hiring
    # ------------------------------------------------------------------

    async def recommend_advocates(
        self, case_id: str, actor_id: Optional[str] = None
    ) -> RankingOutcome:
        """
        Rank the best-rated eligible advocates and replace the case's recommendations.

        Raises:
            InvalidTransition: Case is not pending an advocate
        """
        case = await self._load(case_id)
        self.state_machine.ensure_allowed(case, CaseAction.RECORD_RECOMMENDATIONS)
        if case.ai_analysis is None:
            raise ValidationError(
                "Case has no analysis to match against",
                case_id=case_id,
                action=CaseAction.RECORD_RECOMMENDATIONS.value,
            )

        # The repository should only return eligible candidates; filter anyway
        candidates = shortlist_candidates(
            eligible_candidates(await self.repository.list_eligible_advocates())
        )
        outcome = await self.matching_engine.rank(case.ai_analysis, candidates, case_id=case_id)

        record = await self._apply(
            case_id,
            lambda current: self.state_machine.record_recommendations(
                current, outcome.results, actor_id=actor_id
            ),
        )
        self.recommendations.replace(case_id, outcome.results, updated_at=record.updated_at)
        return outcome

    async def hire_advocate(
        self, case_id: str, advocate_id: str, actor_id: Optional[str] = None
    ) -> CaseRecord:
        """
        Assign an advocate to a case and notify them.

        Raises:
            InvalidTransition: Case is not pending an advocate or already has one
            ValidationError: Advocate unknown or not eligible
        """
        async with self._case_lock(case_id):
            case = await self._load(case_id)
            self.state_machine.ensure_allowed(case, CaseAction.HIRE)
            advocate = await self.repository.get_advocate(advocate_id)
            if advocate is None:
                raise ValidationError(
                    f"Advocate {advocate_id} not found",
                    case_id=case_id,
                    action=CaseAction.HIRE.value,
                )
            updated = self.state_machine.hire(case, advocate, actor_id=actor_id)
            record = await self.repository.update(updated, expected_version=case.version)

        self._dispatch(
            Notification(
                kind=NotificationKind.ADVOCATE_ASSIGNED,
                case_id=record.id,
                recipient_id=advocate.id,
                title="New Case Assigned",
                message=f'You have been hired for case {record.case_number}: "{record.title}"',
                priority=record.priority,
            )
        )
        return record

    # ------------------------------------------------------------------
    # Work & closure
    # ------------------------------------------------------------------

    async def start_work(self, case_id: str, actor_id: Optional[str] = None) -> CaseRecord:
        return await self._apply(
            case_id, lambda case: self.state_machine.start(case, actor_id=actor_id)
        )

    async def hold_case(self, case_id: str, reason: str, actor_id: Optional[str] = None) -> CaseRecord:
        return await self._apply(
            case_id, lambda case: self.state_machine.hold(case, reason, actor_id=actor_id)
        )

    async def resume_case(self, case_id: str, actor_id: Optional[str] = None) -> CaseRecord:
        return await self._apply(
            case_id, lambda case: self.state_machine.resume(case, actor_id=actor_id)
        )

    async def resolve_case(
        self,
        case_id: str,
        result,
        description: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> CaseRecord:
        """Record the outcome and notify the client"""
        record = await self._apply(
            case_id,
            lambda case: self.state_machine.resolve(
                case, result, description=description, actor_id=actor_id
            ),
        )
        self._dispatch(
            Notification(
                kind=NotificationKind.CASE_RESOLVED,
                case_id=record.id,
                recipient_id=record.client_id,
                title="Case Resolved",
                message=(
                    f"Your case {record.case_number} has been resolved "
                    f"({record.outcome.result.value})."
                ),
                priority=record.priority,
            )
        )
        return record

    async def close_case(self, case_id: str, actor_id: Optional[str] = None) -> CaseRecord:
        return await self._apply(
            case_id, lambda case: self.state_machine.close(case, actor_id=actor_id)
        )

    async def withdraw_case(
        self, case_id: str, reason: str, actor_id: Optional[str] = None
    ) -> CaseRecord:
        record = await self._apply(
            case_id, lambda case: self.state_machine.withdraw(case, reason, actor_id=actor_id)
        )
        self.recommendations.clear(case_id)
        return record

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_case(self, case_id: str) -> CaseRecord:
        return await self._load(case_id)

    def get_recommendations(self, case_id: str) -> List[MatchResult]:
        return self.recommendations.get(case_id)
