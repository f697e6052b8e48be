"""
Tests for the PostgreSQL catalog store

Statements are compiled against the PostgreSQL dialect; requests run against a
mocked session factory.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from catalog_search.core.errors import RetrievalFailure
from catalog_search.services.catalog_store import (
    LEVENSHTEIN_MAX_LENGTH,
    Candidate,
    PostgresCatalogStore,
    escape_like,
)
from catalog_search.services.query_normalizer import normalize_query


def _compile(statement):
    compiled = statement.compile(dialect=postgresql.dialect())
    return str(compiled), compiled.params


def _session_factory(result=None, error=None):
    session = AsyncMock()
    if error is not None:
        session.execute.side_effect = error
    else:
        session.execute.return_value = result
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory, session


@pytest.fixture
def store():
    return PostgresCatalogStore(MagicMock())


class TestStatements:
    def test_ranked_matches_statement(self, store):
        sql, params = _compile(store.ranked_matches_statement(normalize_query("almond"), 5, 10))

        assert "DISTINCT ON (food_nutrition.food_name, food_nutrition.description)" in sql
        assert "websearch_to_tsquery('english'::regconfig" in sql
        assert "setweight(to_tsvector('english'::regconfig, food_nutrition.food_name), 'A')" in sql
        assert "ts_rank(" in sql
        assert "similarity(food_nutrition.food_name" in sql
        assert "ILIKE" in sql
        assert "LIMIT" in sql and "OFFSET" in sql
        assert "almond%" in params.values()
        assert 5 in params.values() and 10 in params.values()

    def test_phrase_query_adds_contains_match(self, store):
        sql, params = _compile(store.ranked_matches_statement(normalize_query('"peanut butter"'), 10, 0))

        assert "%peanut butter%" in params.values()
        assert "peanut butter%" in params.values()
        assert '"peanut butter"' in params.values()

    def test_like_wildcards_in_query_are_escaped(self, store):
        _, params = _compile(store.ranked_matches_statement(normalize_query("100%_juice"), 10, 0))

        assert "100\\%\\_juice%" in params.values()

    def test_token_matches_statement(self, store):
        sql, params = _compile(store.token_matches_statement(["oat", "milk"], 10, 0))

        assert "DISTINCT ON" in sql
        assert sql.count("ILIKE") == 4
        assert {"%oat%", "%milk%"} <= set(params.values())

    def test_nearest_statement_has_no_filter(self, store):
        sql, _ = _compile(store.nearest_statement("aple", 10, 0))

        assert "WHERE" not in sql
        assert "levenshtein(" in sql
        assert "similarity(" in sql

    def test_nearest_statement_truncates_levenshtein_input(self, store):
        _, params = _compile(store.nearest_statement("x" * 300, 10, 0))

        assert "x" * LEVENSHTEIN_MAX_LENGTH in params.values()

    def test_count_statement_uses_match_predicate(self, store):
        sql, _ = _compile(store.count_statement(normalize_query("almond")))

        assert sql.startswith("SELECT count(*)")
        assert "websearch_to_tsquery" in sql

    def test_weights_and_text_config_are_configurable(self):
        store = PostgresCatalogStore(MagicMock(), text_config="simple", name_weight="b", description_weight="D")

        sql, _ = _compile(store.count_statement(normalize_query("almond")))

        assert "'simple'::regconfig" in sql
        assert "'B')" in sql and "'D')" in sql

    @pytest.mark.parametrize(
        "kwargs",
        [{"text_config": "english; DROP TABLE x"}, {"name_weight": "E"}, {"description_weight": "AB"}],
    )
    def test_invalid_configuration_is_rejected(self, kwargs):
        with pytest.raises(ValueError):
            PostgresCatalogStore(MagicMock(), **kwargs)


class TestRequests:
    @pytest.mark.asyncio
    async def test_fetch_ranked_matches_builds_candidates(self):
        result = MagicMock()
        result.mappings.return_value.all.return_value = [
            {
                "id": 1,
                "food_name": "Almond",
                "description": "Raw almonds",
                "image_url": None,
                "rank": 0.6,
                "name_similarity": 1.0,
                "desc_similarity": 0.4,
                "exact_name_match": True,
                "prefix_name_match": True,
                "prefix_desc_match": False,
            }
        ]
        factory, session = _session_factory(result=result)

        candidates = await PostgresCatalogStore(factory).fetch_ranked_matches(normalize_query("almond"), 5, 0)

        assert len(candidates) == 1
        assert candidates[0].record_id == 1
        assert candidates[0].exact_name_match is True
        assert candidates[0].name_edit_distance is None
        session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_database_error_becomes_retrieval_failure(self):
        factory, _ = _session_factory(error=OperationalError("SELECT 1", {}, Exception("connection refused")))

        with pytest.raises(RetrievalFailure) as exc_info:
            await PostgresCatalogStore(factory).fetch_nearest("aple", 5, 0)

        assert exc_info.value.details == {"request": "nearest"}
        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_empty_token_list_issues_no_request(self):
        factory, session = _session_factory()

        assert await PostgresCatalogStore(factory).fetch_token_matches([], 5, 0) == []
        session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_count_matches(self):
        result = MagicMock()
        result.scalar_one.return_value = 42
        factory, _ = _session_factory(result=result)

        assert await PostgresCatalogStore(factory).count_matches(normalize_query("almond")) == 42

    @pytest.mark.asyncio
    async def test_count_failure_becomes_retrieval_failure(self):
        factory, _ = _session_factory(error=OperationalError("SELECT 1", {}, Exception("timeout")))

        with pytest.raises(RetrievalFailure):
            await PostgresCatalogStore(factory).count_matches(normalize_query("almond"))


class TestHelpers:
    def test_escape_like(self):
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"

    def test_candidate_from_row_defaults_missing_signals(self):
        candidate = Candidate.from_row({"id": 3, "food_name": "Oat milk"})

        assert candidate.description is None
        assert candidate.rank == 0.0
        assert candidate.name_similarity == 0.0
        assert candidate.exact_name_match is False
        assert candidate.name_edit_distance is None

    def test_candidate_from_row_keeps_edit_distances(self):
        candidate = Candidate.from_row(
            {"id": 3, "food_name": "Apple", "name_edit_distance": 1, "desc_edit_distance": 12}
        )

        assert candidate.name_edit_distance == 1
        assert candidate.desc_edit_distance == 12
        assert candidate.dedup_key == ("Apple", None)
