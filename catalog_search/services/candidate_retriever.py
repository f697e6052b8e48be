"""
Candidate retrieval cascade.

Strategies are tried strictly in order; the first one that returns at least one
row wins and the rest are never issued:

1. weighted_match     - weighted full-text, trigram, prefix and phrase match
2. token_split        - any token of a multi-word query contained in a field
3. global_similarity  - nearest records of the whole catalog (no filter)

Adding a fallback is a matter of appending another RetrievalStrategy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from catalog_search.core.errors import RetrievalFailure, SearchError
from catalog_search.core.logging import get_logger
from catalog_search.core.metrics import search_strategy_hits_total
from catalog_search.services.catalog_store import Candidate, CatalogStore
from catalog_search.services.query_normalizer import QueryDescriptor

logger = get_logger(__name__)


class RetrievalStrategy(ABC):
    """One step of the cascade."""

    name: str = "strategy"

    @abstractmethod
    async def attempt(
        self, store: CatalogStore, query: QueryDescriptor, limit: int, offset: int
    ) -> Optional[List[Candidate]]:
        """Return candidates, or None when the strategy does not apply to the query."""
        pass


class WeightedMatchStrategy(RetrievalStrategy):
    name = "weighted_match"

    async def attempt(self, store, query, limit, offset):
        return await store.fetch_ranked_matches(query, limit, offset)


class TokenSplitStrategy(RetrievalStrategy):
    """Only applies to queries with two or more tokens."""

    name = "token_split"

    async def attempt(self, store, query, limit, offset):
        tokens = query.tokens
        if len(tokens) < 2:
            return None
        return await store.fetch_token_matches(tokens, limit, offset)


class GlobalSimilarityStrategy(RetrievalStrategy):
    name = "global_similarity"

    async def attempt(self, store, query, limit, offset):
        return await store.fetch_nearest(query.search_text, limit, offset)


DEFAULT_STRATEGIES = (
    WeightedMatchStrategy(),
    TokenSplitStrategy(),
    GlobalSimilarityStrategy(),
)


@dataclass
class RetrievalResult:
    """Candidates plus the strategy that produced them (None when all came back empty)."""

    strategy: Optional[str]
    candidates: List[Candidate] = field(default_factory=list)


def _preference(candidate: Candidate):
    return (
        candidate.exact_name_match,
        candidate.rank,
        candidate.name_similarity,
        candidate.desc_similarity,
    )


def deduplicate_candidates(candidates: Sequence[Candidate]) -> List[Candidate]:
    """
    Keep one candidate per (name, description).

    The kept row is the best by exact name match, then rank, then name
    similarity, then description similarity. It takes the position of the
    first row with that key, so retrieval order is otherwise preserved.
    """
    best: Dict[tuple, Candidate] = {}
    order: List[tuple] = []
    for candidate in candidates:
        key = candidate.dedup_key
        current = best.get(key)
        if current is None:
            order.append(key)
            best[key] = candidate
        elif _preference(candidate) > _preference(current):
            best[key] = candidate
    return [best[key] for key in order]


class CandidateRetriever:
    """Runs the strategy cascade against a CatalogStore."""

    def __init__(self, store: CatalogStore, strategies: Optional[Sequence[RetrievalStrategy]] = None):
        self.store = store
        self.strategies = list(strategies if strategies is not None else DEFAULT_STRATEGIES)

    async def retrieve(self, query: QueryDescriptor, limit: int, offset: int) -> RetrievalResult:
        """
        Try each strategy in order and return the first non-empty candidate set.

        Raises:
            RetrievalFailure: any strategy request failed
        """
        for strategy in self.strategies:
            try:
                candidates = await strategy.attempt(self.store, query, limit, offset)
            except SearchError:
                raise
            except Exception as e:
                logger.error("search_strategy_failed", strategy=strategy.name, error=str(e))
                raise RetrievalFailure(
                    "Catalog retrieval failed",
                    details={"strategy": strategy.name},
                ) from e

            if not candidates:
                logger.debug("search_strategy_empty", strategy=strategy.name, applied=candidates is not None)
                continue

            unique = deduplicate_candidates(candidates)
            for candidate in unique:
                candidate.strategy = strategy.name

            search_strategy_hits_total.labels(strategy=strategy.name).inc()
            logger.info(
                "search_strategy_matched",
                strategy=strategy.name,
                rows=len(candidates),
                unique=len(unique),
            )
            return RetrievalResult(strategy=strategy.name, candidates=unique)

        return RetrievalResult(strategy=None, candidates=[])
