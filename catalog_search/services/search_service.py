"""
Search pipeline orchestration.

normalize -> cache lookup -> (retrieve || count) -> score -> shape -> cache store

Retrieval and the advisory count run concurrently under one deadline; when the
deadline expires both are cancelled and the request fails with
RetrievalFailure. Collaborators are injected so the whole pipeline can run
against in-memory fakes.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

from catalog_search.core.config import settings
from catalog_search.core.errors import InvalidQuery, NoRelevantResults, RetrievalFailure
from catalog_search.core.logging import get_logger
from catalog_search.core.metrics import search_pipeline_latency_seconds, search_requests_total
from catalog_search.schemas.search import ResultPage
from catalog_search.services.candidate_retriever import CandidateRetriever, RetrievalResult
from catalog_search.services.catalog_store import CatalogStore
from catalog_search.services.count_estimator import CountEstimator
from catalog_search.services.query_normalizer import NormalizedSearch, normalize_request
from catalog_search.services.relevance_scorer import RelevanceScorer
from catalog_search.services.result_shaper import ResultShaper
from catalog_search.services.search_cache import SearchCacheGate

logger = get_logger(__name__)


class SearchService:
    """Answers one free-text catalog query per call; holds no per-request state."""

    def __init__(
        self,
        store: CatalogStore,
        cache_gate: SearchCacheGate,
        retriever: Optional[CandidateRetriever] = None,
        scorer: Optional[RelevanceScorer] = None,
        shaper: Optional[ResultShaper] = None,
        count_estimator: Optional[CountEstimator] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.store = store
        self.cache_gate = cache_gate
        self.retriever = retriever or CandidateRetriever(store)
        self.scorer = scorer or RelevanceScorer()
        self.shaper = shaper or ResultShaper()
        self.count_estimator = count_estimator or CountEstimator(store)
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.SEARCH_REQUEST_TIMEOUT_SECONDS

    async def search(self, text: Any, limit: Any = None, offset: Any = None) -> ResultPage:
        """
        Run a search.

        Raises:
            InvalidQuery: query text or parameters rejected
            NoRelevantResults: nothing passed the acceptance policy
            RetrievalFailure: storage failed or the deadline expired
        """
        try:
            request = normalize_request(text, limit, offset)
        except InvalidQuery as e:
            search_requests_total.labels(outcome="invalid").inc()
            logger.info("search_query_rejected", reason=e.message)
            raise

        key = self.cache_gate.cache_key(request.query.raw_text, request.limit, request.offset)
        cached = await self.cache_gate.lookup(key)
        if cached is not None:
            search_requests_total.labels(outcome="cached").inc()
            logger.info("search_cache_hit", limit=request.limit, offset=request.offset, count=cached.count)
            return cached

        start_time = time.time()
        try:
            page = await self._run_pipeline(request)
        except NoRelevantResults:
            search_requests_total.labels(outcome="no_results").inc()
            logger.info(
                "search_no_relevant_results",
                length_class=request.query.length_class.value,
                is_phrase=request.query.is_phrase,
            )
            raise
        except RetrievalFailure as e:
            search_requests_total.labels(outcome="failure").inc()
            logger.error("search_retrieval_failed", error=e.message, details=e.details)
            raise
        finally:
            search_pipeline_latency_seconds.observe(time.time() - start_time)

        await self.cache_gate.store(key, page)
        search_requests_total.labels(outcome="ok").inc()
        logger.info(
            "search_completed",
            count=page.count,
            estimated_total=page.estimated_total,
            limit=page.limit,
            offset=page.offset,
        )
        return page

    async def _run_pipeline(self, request: NormalizedSearch) -> ResultPage:
        query = request.query
        retrieval, estimated_total = await self._retrieve_and_count(request)

        accepted = self.scorer.score(retrieval.candidates, query.length_class, request.limit)
        return self.shaper.shape(
            accepted,
            query,
            limit=request.limit,
            offset=request.offset,
            estimated_total=estimated_total,
        )

    async def _retrieve_and_count(self, request: NormalizedSearch) -> tuple[RetrievalResult, int]:
        retrieve_task = asyncio.ensure_future(
            self.retriever.retrieve(request.query, request.limit, request.offset)
        )
        count_task = asyncio.ensure_future(self.count_estimator.estimate(request.query))

        try:
            await asyncio.wait_for(
                asyncio.gather(retrieve_task, count_task),
                timeout=self.timeout_seconds or None,
            )
        except asyncio.TimeoutError as e:
            raise RetrievalFailure(
                "Search deadline exceeded",
                details={"timeout_seconds": self.timeout_seconds},
            ) from e
        finally:
            for task in (retrieve_task, count_task):
                if not task.done():
                    task.cancel()

        return retrieve_task.result(), count_task.result()
