"""
Advisory total for pagination.

Always counts with the weighted-match predicate, whichever strategy produced
the page, so the figure can differ from the page's own count.
"""

from catalog_search.core.errors import RetrievalFailure, SearchError
from catalog_search.core.logging import get_logger
from catalog_search.services.catalog_store import CatalogStore
from catalog_search.services.query_normalizer import QueryDescriptor

logger = get_logger(__name__)


class CountEstimator:
    def __init__(self, store: CatalogStore):
        self.store = store

    async def estimate(self, query: QueryDescriptor) -> int:
        try:
            total = await self.store.count_matches(query)
        except SearchError:
            raise
        except Exception as e:
            logger.error("search_count_failed", error=str(e))
            raise RetrievalFailure("Catalog count failed", details={"request": "count"}) from e
        return max(0, int(total))
