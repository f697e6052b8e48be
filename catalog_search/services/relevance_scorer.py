"""
Relevance scoring and acceptance.

composite_score = name_similarity * 2 + rank - name_edit_distance * 0.15

A missing edit distance counts as 10. A candidate is kept when ANY signal
vouches for it: composite score above 0.05, name similarity above the length
class threshold, or a known edit distance within the length class limit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from catalog_search.core.errors import NoRelevantResults
from catalog_search.services.catalog_store import Candidate
from catalog_search.services.query_normalizer import LengthClass

SIMILARITY_WEIGHT = 2.0
EDIT_DISTANCE_PENALTY = 0.15
MISSING_EDIT_DISTANCE = 10
MIN_COMPOSITE_SCORE = 0.05


@dataclass(frozen=True)
class AcceptanceThresholds:
    similarity: float
    edit_distance: int


ACCEPTANCE_THRESHOLDS: Dict[LengthClass, AcceptanceThresholds] = {
    LengthClass.SHORT: AcceptanceThresholds(similarity=0.10, edit_distance=5),
    LengthClass.NORMAL: AcceptanceThresholds(similarity=0.20, edit_distance=8),
}


def composite_score(candidate: Candidate) -> float:
    distance = candidate.name_edit_distance
    if distance is None:
        distance = MISSING_EDIT_DISTANCE
    return (candidate.name_similarity * SIMILARITY_WEIGHT + candidate.rank) - (distance * EDIT_DISTANCE_PENALTY)


def is_accepted(candidate: Candidate, thresholds: AcceptanceThresholds) -> bool:
    """Union of signals; uses the candidate's already computed composite_score."""
    if candidate.composite_score > MIN_COMPOSITE_SCORE:
        return True
    if candidate.name_similarity > thresholds.similarity:
        return True
    return candidate.name_edit_distance is not None and candidate.name_edit_distance <= thresholds.edit_distance


class RelevanceScorer:
    """Scores, filters, orders and truncates a candidate set."""

    def __init__(self, thresholds: Optional[Dict[LengthClass, AcceptanceThresholds]] = None):
        self.thresholds = thresholds or ACCEPTANCE_THRESHOLDS

    def score(self, candidates: Sequence[Candidate], length_class: LengthClass, limit: int) -> List[Candidate]:
        """
        Return accepted candidates, best first, at most ``limit`` of them.

        Raises:
            NoRelevantResults: nothing passed the acceptance policy
        """
        thresholds = self.thresholds[length_class]

        for candidate in candidates:
            candidate.composite_score = composite_score(candidate)

        accepted = [c for c in candidates if is_accepted(c, thresholds)]
        if not accepted:
            raise NoRelevantResults(
                "No highly relevant results found for your query.",
                details={"candidates": len(candidates), "length_class": length_class.value},
            )

        # sorted() is stable, so retrieval order breaks ties
        accepted = sorted(accepted, key=lambda c: c.composite_score, reverse=True)
        return accepted[:limit]
