"""Advocate matching engine.

Ranks eligible advocates for an analysed case. The model reply is accepted
only if it is complete and well formed: one entry per supplied candidate,
known ids, integer scores in [0, 100] and string reasons. Anything less and
the whole reply is discarded in favour of the deterministic ranking, where
candidates keep their input order with scores 80, 75, 70, ... floored at 0.
Partial replies are never salvaged.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from lsp_core_lib.core.preprocessing import (
    MATCHING_SYSTEM_PROMPT,
    build_matching_prompt,
    parse_json_reply,
)
from lsp_core_lib.infrastructure.ai_log import AICallLog, record_safely
from lsp_core_lib.infrastructure.llm.router import LLMRouter
from lsp_core_lib.models.analysis import (
    DEFAULT_MATCH_REASON,
    AIAnalysis,
    AICallRecord,
    AICallStatus,
    AICallType,
    MatchResult,
    Provenance,
    RankingOutcome,
)
from lsp_core_lib.models.case import AdvocateCandidate
from lsp_core_lib.models.exceptions import (
    ExternalServiceError,
    ExternalServiceTimeout,
    MalformedAIResponse,
)

logger = logging.getLogger(__name__)

MATCHING_TEMPERATURE = 0.2
MATCHING_MAX_TOKENS = 500

FALLBACK_TOP_SCORE = 80
FALLBACK_SCORE_STEP = 5

# Largest pool handed to the model per ranking pass
MAX_MATCH_CANDIDATES = 10


def shortlist_candidates(
    candidates: Sequence[AdvocateCandidate],
    limit: int = MAX_MATCH_CANDIDATES,
) -> List[AdvocateCandidate]:
    """Best-rated candidates first (rating, then success rate, then id), capped at ``limit``"""
    ordered = sorted(
        candidates,
        key=lambda candidate: (-candidate.rating, -candidate.success_rate, candidate.id),
    )
    return ordered[:limit]


def fallback_score(index: int) -> int:
    return max(0, FALLBACK_TOP_SCORE - FALLBACK_SCORE_STEP * index)


def fallback_ranking(
    candidates: Sequence[AdvocateCandidate],
    recommended_at: Optional[datetime] = None,
) -> List[MatchResult]:
    """Order-preserving deterministic ranking"""
    recommended_at = recommended_at or datetime.now(timezone.utc)
    return [
        MatchResult(
            advocate_id=candidate.id,
            match_score=fallback_score(index),
            reason=DEFAULT_MATCH_REASON,
            recommended_at=recommended_at,
        )
        for index, candidate in enumerate(candidates)
    ]


def validate_match_reply(
    payload: Any,
    candidates: Sequence[AdvocateCandidate],
    recommended_at: datetime,
) -> List[MatchResult]:
    """
    Check a decoded matching reply against the candidate list.

    Returns:
        MatchResults in reply order

    Raises:
        MalformedAIResponse: On the first defect found
    """
    if not isinstance(payload, list):
        raise MalformedAIResponse("Matching reply is not a JSON array")

    known_ids = {candidate.id for candidate in candidates}
    seen = set()
    results = []

    for position, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise MalformedAIResponse(f"Matching entry {position} is not an object")

        advocate_id = entry.get("advocateId")
        score = entry.get("matchScore")
        reason = entry.get("reason")

        if not isinstance(advocate_id, str) or advocate_id not in known_ids:
            raise MalformedAIResponse(f"Matching entry {position} has unknown advocateId")
        if advocate_id in seen:
            raise MalformedAIResponse(f"Advocate {advocate_id} ranked more than once")
        # bool is an int subclass
        if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
            raise MalformedAIResponse(f"Advocate {advocate_id} has invalid matchScore: {score!r}")
        if not isinstance(reason, str):
            raise MalformedAIResponse(f"Advocate {advocate_id} has no reason")

        seen.add(advocate_id)
        results.append(
            MatchResult(
                advocate_id=advocate_id,
                match_score=score,
                reason=reason,
                recommended_at=recommended_at,
            )
        )

    if seen != known_ids:
        missing = sorted(known_ids - seen)
        raise MalformedAIResponse(f"Matching reply omits advocates: {missing}")

    return results


def sort_by_score(
    results: Sequence[MatchResult],
    candidates: Optional[Sequence[AdvocateCandidate]] = None,
) -> List[MatchResult]:
    """Descending score; ties follow the candidates' input order.

    Without candidates, ties keep the order of ``results``.
    """
    if candidates is None:
        return sorted(results, key=lambda result: result.match_score, reverse=True)
    position = {candidate.id: index for index, candidate in enumerate(candidates)}
    return sorted(
        results,
        key=lambda result: (-result.match_score, position.get(result.advocate_id, len(position))),
    )


class MatchingEngine:
    """Ranks advocate candidates for an analysed case"""

    def __init__(
        self,
        router: Optional[LLMRouter] = None,
        call_log: Optional[AICallLog] = None,
    ):
        self.router = router or LLMRouter()
        self.call_log = call_log

    async def rank(
        self,
        analysis: AIAnalysis,
        candidates: Sequence[AdvocateCandidate],
        *,
        case_id: Optional[str] = None,
    ) -> RankingOutcome:
        """
        Rank candidates for one case. Never raises.

        Returns:
            RankingOutcome covering every candidate exactly once, sorted by
            descending score
        """
        candidates = list(candidates)
        if not candidates:
            logger.info(f"No candidates to rank (case={case_id})")
            return RankingOutcome(results=(), provenance=Provenance.DEFAULT)

        prompt = build_matching_prompt(analysis, candidates)
        recommended_at = datetime.now(timezone.utc)
        started = time.monotonic()
        response = None
        status = AICallStatus.SUCCESS
        error_message = None

        try:
            response = await self.router.complete(
                prompt,
                system=MATCHING_SYSTEM_PROMPT,
                max_tokens=MATCHING_MAX_TOKENS,
                temperature=MATCHING_TEMPERATURE,
            )
            results = validate_match_reply(
                parse_json_reply(response.content), candidates, recommended_at
            )
            provenance = Provenance.AI
        except ExternalServiceTimeout as e:
            status, error_message = AICallStatus.TIMEOUT, str(e)
        except (ExternalServiceError, MalformedAIResponse) as e:
            status, error_message = AICallStatus.ERROR, str(e)
        except Exception as e:
            logger.error(f"Unexpected error during advocate matching: {e}")
            status, error_message = AICallStatus.ERROR, str(e)

        if status != AICallStatus.SUCCESS:
            logger.warning(
                f"Advocate matching fell back to default ranking (case={case_id}): {error_message}"
            )
            results = fallback_ranking(candidates, recommended_at)
            provenance = Provenance.DEFAULT

        call = AICallRecord(
            call_type=AICallType.ADVOCATE_MATCHING,
            case_id=case_id,
            input={
                "analysis": analysis.model_dump(mode="json", by_alias=True),
                "advocateIds": [candidate.id for candidate in candidates],
            },
            output=response.content if response is not None else None,
            model=response.model if response is not None else None,
            provider=response.provider if response is not None else None,
            tokens_used=response.tokens_used if response is not None else 0,
            latency_ms=int((time.monotonic() - started) * 1000),
            status=status,
            error_message=error_message,
        )
        await record_safely(self.call_log, call)

        return RankingOutcome(
            results=tuple(sort_by_score(results, candidates)),
            provenance=provenance,
            call=call,
        )
