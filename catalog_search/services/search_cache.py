"""
Read-through / write-through cache gate for search pages.

Keys derive from (normalized query text, limit, offset). Pages are stored as
JSON with a fixed expiry. Nothing in here raises: an unreadable entry or a
failed write just means the pipeline runs (or its result is not remembered).
"""

from __future__ import annotations

from typing import Optional, Protocol

from catalog_search.core.config import settings
from catalog_search.core.logging import get_logger
from catalog_search.schemas.search import ResultPage
from catalog_search.services.cache_service import generate_cache_key
from pydantic import ValidationError

logger = get_logger(__name__)


class ResponseCache(Protocol):
    """What the gate needs from a cache collaborator."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool: ...

    async def delete(self, key: str) -> bool: ...


class SearchCacheGate:
    NAMESPACE = "search_results"

    def __init__(self, cache: ResponseCache, ttl: Optional[int] = None):
        self.cache = cache
        self.ttl = ttl or settings.SEARCH_CACHE_TTL_SECONDS

    def cache_key(self, query_text: str, limit: int, offset: int) -> str:
        return generate_cache_key(self.NAMESPACE, query_text, limit=limit, offset=offset)

    async def lookup(self, key: str) -> Optional[ResultPage]:
        """Return the cached page flagged as served from cache, or None."""
        try:
            payload = await self.cache.get(key)
        except Exception as e:
            logger.warning("search_cache_read_failed", key=key, error=str(e))
            return None

        if payload is None:
            return None

        try:
            page = ResultPage.model_validate_json(payload)
        except (ValidationError, ValueError) as e:
            logger.warning("search_cache_entry_invalid", key=key, error=str(e))
            await self._discard(key)
            return None

        return page.model_copy(update={"served_from_cache": True})

    async def store(self, key: str, page: ResultPage) -> bool:
        """Best-effort write; returns False instead of raising."""
        try:
            payload = page.model_copy(update={"served_from_cache": False}).model_dump_json()
            stored = await self.cache.set(key, payload, ttl=self.ttl)
        except Exception as e:
            logger.warning("search_cache_store_failed", key=key, error=str(e))
            return False

        if not stored:
            logger.warning("search_cache_store_failed", key=key)
        return bool(stored)

    async def _discard(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except Exception as e:
            logger.warning("search_cache_discard_failed", key=key, error=str(e))
