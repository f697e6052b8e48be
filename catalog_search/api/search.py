"""
Catalog search endpoint
"""

from typing import Optional

from catalog_search.core.api_envelope import PaginationMetadata, success_response
from catalog_search.core.database import AsyncSessionLocal, redis_client
from catalog_search.core.logging import get_logger
from catalog_search.core.middleware import get_request_id
from catalog_search.services.cache_service import CacheService
from catalog_search.services.catalog_store import PostgresCatalogStore
from catalog_search.services.search_cache import SearchCacheGate
from catalog_search.services.search_service import SearchService
from fastapi import APIRouter, Depends, Query, Request

router = APIRouter(prefix="/api/v1/search", tags=["search"])
logger = get_logger(__name__)

# Singleton instances
_cache_service: Optional[CacheService] = None
_search_service: Optional[SearchService] = None


def get_cache_service() -> CacheService:
    """Get or create the two-tier response cache."""
    global _cache_service
    if _cache_service is None:
        _cache_service = CacheService(redis_client)
    return _cache_service


def get_search_service() -> SearchService:
    """Get or create the search pipeline."""
    global _search_service
    if _search_service is None:
        _search_service = SearchService(
            store=PostgresCatalogStore(AsyncSessionLocal),
            cache_gate=SearchCacheGate(get_cache_service()),
        )
    return _search_service


@router.get("")
async def search_catalog(
    request: Request,
    q: Optional[str] = Query(None, description="Free-text query; wrap in double quotes for a phrase"),
    limit: Optional[str] = Query(None, description="Page size, clamped to [1, 50]; default 10"),
    offset: Optional[str] = Query(None, description="Rows to skip; default 0"),
    service: SearchService = Depends(get_search_service),
):
    """
    Search the catalog.

    Pagination values are lenient: anything unparseable falls back to the
    default. Errors are rendered by the SearchError handler:

    - 400 VALIDATION_ERROR: missing, too short or too long query
    - 404 NOT_FOUND: nothing relevant enough
    - 500 DATABASE_ERROR: storage failure or deadline exceeded
    """
    page = await service.search(q, limit, offset)

    pagination = PaginationMetadata(
        limit=page.limit,
        offset=page.offset,
        returned=page.count,
        estimated_total=page.estimated_total,
    )
    return success_response(
        data=page.model_dump(),
        request_id=get_request_id(request),
        pagination=pagination,
    )
