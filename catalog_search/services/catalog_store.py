"""
Catalog store: the storage collaborator behind the search pipeline.

The pipeline never computes text primitives itself. It issues one of four
requests against a `CatalogStore`:

- fetch_ranked_matches: weighted full-text + trigram + prefix (+ phrase) match
- fetch_token_matches: any token contained in either field
- fetch_nearest: whole-catalog nearest neighbours by similarity/edit distance
- count_matches: row count for the fetch_ranked_matches predicate

`PostgresCatalogStore` answers them with pg_trgm, fuzzystrmatch and the
built-in full-text search. Each request runs in its own session so the count
can proceed concurrently with retrieval.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from catalog_search.core.config import settings
from catalog_search.core.errors import RetrievalFailure
from catalog_search.core.logging import get_logger
from catalog_search.models.catalog_item import CatalogItem
from catalog_search.services.query_normalizer import QueryDescriptor
from sqlalchemy import func, literal_column, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)

# levenshtein() rejects arguments longer than this
LEVENSHTEIN_MAX_LENGTH = 255

_VALID_WEIGHTS = frozenset("ABCD")
_TEXT_CONFIG_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")


@dataclass
class Candidate:
    """One retrieved catalog record and the signals its strategy produced."""

    record_id: Any
    food_name: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    rank: float = 0.0
    name_similarity: float = 0.0
    desc_similarity: float = 0.0
    exact_name_match: bool = False
    prefix_name_match: bool = False
    prefix_desc_match: bool = False
    name_edit_distance: Optional[int] = None
    desc_edit_distance: Optional[int] = None

    strategy: Optional[str] = None
    composite_score: float = 0.0
    name_highlight: Optional[str] = None
    desc_highlight: Optional[str] = None

    @property
    def dedup_key(self) -> Tuple[str, Optional[str]]:
        return (self.food_name, self.description)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Candidate":
        """Build a candidate from a result mapping; absent signals take defaults."""

        def _float(key: str) -> float:
            value = row.get(key)
            return float(value) if value is not None else 0.0

        def _int(key: str) -> Optional[int]:
            value = row.get(key)
            return int(value) if value is not None else None

        return cls(
            record_id=row["id"],
            food_name=row["food_name"],
            description=row.get("description"),
            image_url=row.get("image_url"),
            rank=_float("rank"),
            name_similarity=_float("name_similarity"),
            desc_similarity=_float("desc_similarity"),
            exact_name_match=bool(row.get("exact_name_match")),
            prefix_name_match=bool(row.get("prefix_name_match")),
            prefix_desc_match=bool(row.get("prefix_desc_match")),
            name_edit_distance=_int("name_edit_distance"),
            desc_edit_distance=_int("desc_edit_distance"),
        )


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so user text is matched literally."""
    return value.replace(escape, escape + escape).replace("%", escape + "%").replace("_", escape + "_")


class CatalogStore(ABC):
    """Abstract storage collaborator."""

    @abstractmethod
    async def fetch_ranked_matches(self, query: QueryDescriptor, limit: int, offset: int) -> List[Candidate]:
        """Weighted full-text/trigram/prefix matches, one row per (name, description)."""
        pass

    @abstractmethod
    async def fetch_token_matches(self, tokens: Sequence[str], limit: int, offset: int) -> List[Candidate]:
        """Records whose name or description contains any token."""
        pass

    @abstractmethod
    async def fetch_nearest(self, text: str, limit: int, offset: int) -> List[Candidate]:
        """Top records of the whole catalog by similarity, then edit distance."""
        pass

    @abstractmethod
    async def count_matches(self, query: QueryDescriptor) -> int:
        """Count of records satisfying the fetch_ranked_matches predicate."""
        pass


class PostgresCatalogStore(CatalogStore):
    """CatalogStore backed by PostgreSQL (pg_trgm + fuzzystrmatch + FTS)."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        text_config: str = None,
        name_weight: str = None,
        description_weight: str = None,
    ):
        self._session_factory = session_factory
        self.text_config = text_config or settings.SEARCH_TEXT_CONFIG
        self.name_weight = (name_weight or settings.SEARCH_NAME_WEIGHT).upper()
        self.description_weight = (description_weight or settings.SEARCH_DESCRIPTION_WEIGHT).upper()

        if not _TEXT_CONFIG_PATTERN.match(self.text_config):
            raise ValueError(f"Invalid text search configuration {self.text_config!r}")
        for weight in (self.name_weight, self.description_weight):
            if weight not in _VALID_WEIGHTS:
                raise ValueError(f"Invalid tsvector weight {weight!r}; expected one of A, B, C, D")

        self.table = CatalogItem.__table__

    # ------------------------------------------------------------------
    # Statement builders
    # ------------------------------------------------------------------

    def _regconfig(self):
        return literal_column(f"'{self.text_config}'::regconfig")

    def _weighted_document(self):
        t = self.table
        name_vector = func.setweight(
            func.to_tsvector(self._regconfig(), t.c.food_name),
            literal_column(f"'{self.name_weight}'"),
        )
        description_vector = func.setweight(
            func.to_tsvector(self._regconfig(), func.coalesce(t.c.description, "")),
            literal_column(f"'{self.description_weight}'"),
        )
        return name_vector.op("||")(description_vector)

    def _ts_query(self, query: QueryDescriptor):
        # websearch syntax understands the surrounding quotes of a phrase query
        return func.websearch_to_tsquery(self._regconfig(), query.raw_text)

    def match_predicate(self, query: QueryDescriptor):
        """Predicate shared by fetch_ranked_matches and count_matches."""
        t = self.table
        text = query.search_text
        prefix = escape_like(text) + "%"

        clauses = [
            self._weighted_document().op("@@")(self._ts_query(query)),
            t.c.food_name.op("%")(text),
            t.c.description.op("%")(text),
            t.c.food_name.ilike(prefix, escape="\\"),
            t.c.description.ilike(prefix, escape="\\"),
        ]
        if query.is_phrase:
            contains = "%" + escape_like(query.phrase_body) + "%"
            clauses.append(t.c.food_name.ilike(contains, escape="\\"))
            clauses.append(t.c.description.ilike(contains, escape="\\"))
        return or_(*clauses)

    def ranked_matches_statement(self, query: QueryDescriptor, limit: int, offset: int):
        t = self.table
        text = query.search_text
        prefix = escape_like(text) + "%"

        rank = func.ts_rank(self._weighted_document(), self._ts_query(query)).label("rank")
        name_similarity = func.similarity(t.c.food_name, text).label("name_similarity")
        desc_similarity = func.similarity(t.c.description, text).label("desc_similarity")
        exact_name_match = (t.c.food_name == text).label("exact_name_match")

        ranked = (
            select(
                t.c.id,
                t.c.food_name,
                t.c.description,
                t.c.image_url,
                rank,
                name_similarity,
                desc_similarity,
                exact_name_match,
                t.c.food_name.ilike(prefix, escape="\\").label("prefix_name_match"),
                t.c.description.ilike(prefix, escape="\\").label("prefix_desc_match"),
            )
            .where(self.match_predicate(query))
            .distinct(t.c.food_name, t.c.description)
            .order_by(
                t.c.food_name,
                t.c.description,
                exact_name_match.desc(),
                rank.desc(),
                name_similarity.desc(),
                desc_similarity.desc(),
            )
            .subquery("ranked")
        )

        return (
            select(ranked)
            .order_by(
                ranked.c.exact_name_match.desc(),
                ranked.c.prefix_name_match.desc(),
                ranked.c.prefix_desc_match.desc(),
                ranked.c.rank.desc(),
                ranked.c.name_similarity.desc(),
                ranked.c.desc_similarity.desc(),
            )
            .limit(limit)
            .offset(offset)
        )

    def token_matches_statement(self, tokens: Sequence[str], limit: int, offset: int):
        t = self.table
        clauses = []
        for token in tokens:
            pattern = "%" + escape_like(token) + "%"
            clauses.append(t.c.food_name.ilike(pattern, escape="\\"))
            clauses.append(t.c.description.ilike(pattern, escape="\\"))

        return (
            select(t.c.id, t.c.food_name, t.c.description, t.c.image_url)
            .where(or_(*clauses))
            .distinct(t.c.food_name, t.c.description)
            .order_by(t.c.food_name, t.c.description)
            .limit(limit)
            .offset(offset)
        )

    def nearest_statement(self, text: str, limit: int, offset: int):
        t = self.table
        target = func.lower(text[:LEVENSHTEIN_MAX_LENGTH])

        name_similarity = func.similarity(t.c.food_name, text).label("name_similarity")
        desc_similarity = func.similarity(t.c.description, text).label("desc_similarity")
        name_distance = func.levenshtein(
            func.lower(func.left(t.c.food_name, LEVENSHTEIN_MAX_LENGTH)), target
        ).label("name_edit_distance")
        desc_distance = func.levenshtein(
            func.lower(func.left(func.coalesce(t.c.description, ""), LEVENSHTEIN_MAX_LENGTH)), target
        ).label("desc_edit_distance")

        return (
            select(
                t.c.id,
                t.c.food_name,
                t.c.description,
                t.c.image_url,
                name_similarity,
                desc_similarity,
                name_distance,
                desc_distance,
            )
            .order_by(
                name_similarity.desc(),
                desc_similarity.desc(),
                name_distance.asc(),
                desc_distance.asc(),
            )
            .limit(limit)
            .offset(offset)
        )

    def count_statement(self, query: QueryDescriptor):
        return select(func.count()).select_from(self.table).where(self.match_predicate(query))

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def _fetch(self, statement, request: str) -> List[Candidate]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = result.mappings().all()
        except (SQLAlchemyError, OSError) as e:
            logger.error("catalog_store_request_failed", request=request, error=str(e))
            raise RetrievalFailure("Catalog storage request failed", details={"request": request}) from e

        return [Candidate.from_row(row) for row in rows]

    async def fetch_ranked_matches(self, query: QueryDescriptor, limit: int, offset: int) -> List[Candidate]:
        return await self._fetch(self.ranked_matches_statement(query, limit, offset), "ranked_matches")

    async def fetch_token_matches(self, tokens: Sequence[str], limit: int, offset: int) -> List[Candidate]:
        if not tokens:
            return []
        return await self._fetch(self.token_matches_statement(tokens, limit, offset), "token_matches")

    async def fetch_nearest(self, text: str, limit: int, offset: int) -> List[Candidate]:
        return await self._fetch(self.nearest_statement(text, limit, offset), "nearest")

    async def count_matches(self, query: QueryDescriptor) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(self.count_statement(query))
                total = result.scalar_one()
        except (SQLAlchemyError, OSError) as e:
            logger.error("catalog_store_request_failed", request="count", error=str(e))
            raise RetrievalFailure("Catalog storage request failed", details={"request": "count"}) from e

        return int(total or 0)
