"""Highlighting and page assembly."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from catalog_search.schemas.search import ResultPage, SearchResultItem
from catalog_search.services.catalog_store import Candidate
from catalog_search.services.query_normalizer import QueryDescriptor

HIGHLIGHT_OPEN = "<mark>"
HIGHLIGHT_CLOSE = "</mark>"


def highlight_match(text: Optional[str], query: Optional[str]) -> Optional[str]:
    """Wrap every case-insensitive literal occurrence of ``query`` in ``text``."""
    if not text or not query:
        return text
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    return pattern.sub(lambda m: f"{HIGHLIGHT_OPEN}{m.group(0)}{HIGHLIGHT_CLOSE}", text)


def to_result_item(candidate: Candidate) -> SearchResultItem:
    return SearchResultItem(
        id=candidate.record_id,
        food_name=candidate.food_name,
        description=candidate.description,
        image_url=candidate.image_url,
        rank=candidate.rank,
        name_similarity=candidate.name_similarity,
        desc_similarity=candidate.desc_similarity,
        exact_name_match=candidate.exact_name_match,
        prefix_name_match=candidate.prefix_name_match,
        prefix_desc_match=candidate.prefix_desc_match,
        name_edit_distance=candidate.name_edit_distance,
        desc_edit_distance=candidate.desc_edit_distance,
        strategy=candidate.strategy,
        composite_score=candidate.composite_score,
        food_name_highlight=candidate.name_highlight,
        description_highlight=candidate.desc_highlight,
    )


class ResultShaper:
    """Turns scored candidates into a ResultPage."""

    def shape(
        self,
        candidates: Sequence[Candidate],
        query: QueryDescriptor,
        limit: int,
        offset: int,
        estimated_total: Optional[int] = None,
    ) -> ResultPage:
        for candidate in candidates:
            candidate.name_highlight = highlight_match(candidate.food_name, query.search_text)
            candidate.desc_highlight = highlight_match(candidate.description, query.search_text)

        results = [to_result_item(c) for c in candidates]
        return ResultPage(
            total=len(results),
            count=len(results),
            limit=limit,
            offset=offset,
            results=results,
            served_from_cache=False,
            estimated_total=estimated_total,
        )
