"""Latest advocate recommendations per case.

Each matching pass replaces the previous set for its case; passes are never
merged.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from lsp_core_lib.models.analysis import MatchResult

logger = logging.getLogger(__name__)


class RecommendationStore:
    """In-memory store keyed by case id"""

    def __init__(self):
        self._sets: Dict[str, Tuple[Tuple[MatchResult, ...], datetime]] = {}

    def replace(
        self,
        case_id: str,
        results: Sequence[MatchResult],
        updated_at: Optional[datetime] = None,
    ) -> None:
        updated_at = updated_at or datetime.now(timezone.utc)
        self._sets[case_id] = (tuple(results), updated_at)
        logger.debug(f"Recommendations for case {case_id} replaced ({len(results)} results)")

    def get(self, case_id: str) -> List[MatchResult]:
        """Results by match_score descending, then most recent first"""
        if case_id not in self._sets:
            return []
        results, _ = self._sets[case_id]
        by_recency = sorted(results, key=lambda r: r.recommended_at, reverse=True)
        return sorted(by_recency, key=lambda r: r.match_score, reverse=True)

    def last_updated(self, case_id: str) -> Optional[datetime]:
        entry = self._sets.get(case_id)
        return entry[1] if entry else None

    def clear(self, case_id: str) -> None:
        self._sets.pop(case_id, None)

    def __contains__(self, case_id: str) -> bool:
        return case_id in self._sets

    def __len__(self) -> int:
        return len(self._sets)
