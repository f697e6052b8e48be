from __future__ import annotations

import os

# Ensure the search settings can be imported in tests without requiring a
# running database or cache. These defaults are only applied when the
# variables are not already set by the caller/CI.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("POSTGRES_DB", "test")

os.environ.setdefault("REDIS_PASSWORD", "test")

import pytest  # noqa: E402
from catalog_search.services.catalog_store import Candidate  # noqa: E402


@pytest.fixture
def make_candidate():
    """Factory for candidates with sensible defaults for unlisted signals."""

    def _make(record_id=1, food_name="Almond", description="Raw almonds", **signals):
        return Candidate(record_id=record_id, food_name=food_name, description=description, **signals)

    return _make
