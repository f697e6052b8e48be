"""
Query normalization.

Turns caller-supplied query text and pagination values into a validated,
immutable request description. Pure functions only: no I/O, no logging.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from catalog_search.core.config import settings
from catalog_search.core.errors import InvalidQuery

# Queries shorter than this many characters use the lenient thresholds
SHORT_QUERY_LENGTH = 6

_PHRASE_PATTERN = re.compile(r'"(.+)"', re.DOTALL)


class LengthClass(str, Enum):
    """Query length bucket used to pick acceptance thresholds."""

    SHORT = "short"
    NORMAL = "normal"


@dataclass(frozen=True)
class QueryDescriptor:
    """Canonical form of one search query."""

    raw_text: str
    is_phrase: bool = False
    phrase_body: Optional[str] = None
    length_class: LengthClass = LengthClass.NORMAL

    def __post_init__(self):
        if self.is_phrase and self.phrase_body is None:
            raise ValueError("phrase queries require a phrase_body")

    @property
    def search_text(self) -> str:
        """Text matched against catalog fields (quotes removed for phrases)."""
        return self.phrase_body if self.is_phrase else self.raw_text

    @property
    def tokens(self) -> List[str]:
        """Non-empty whitespace-separated tokens of the search text."""
        return self.search_text.split()


@dataclass(frozen=True)
class NormalizedSearch:
    """Validated query plus clamped pagination."""

    query: QueryDescriptor
    limit: int
    offset: int


def _parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def clamp_limit(value: Any) -> int:
    """Parse a page size and clamp it into [1, SEARCH_MAX_LIMIT]."""
    parsed = _parse_int(value)
    if parsed is None:
        parsed = settings.SEARCH_DEFAULT_LIMIT
    return max(1, min(parsed, settings.SEARCH_MAX_LIMIT))


def clamp_offset(value: Any) -> int:
    """Parse an offset; anything unparseable or negative becomes 0."""
    parsed = _parse_int(value)
    if parsed is None:
        return 0
    return max(0, parsed)


def normalize_query(text: Any) -> QueryDescriptor:
    """
    Build a QueryDescriptor from raw query text.

    Raises:
        InvalidQuery: missing, empty, too short or too long after trimming
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidQuery("Missing or invalid query parameter")

    trimmed = text.strip()
    if len(trimmed) < settings.SEARCH_MIN_QUERY_LENGTH:
        raise InvalidQuery(
            "Query too short or not meaningful",
            details={"min_length": settings.SEARCH_MIN_QUERY_LENGTH},
        )
    if len(trimmed) > settings.SEARCH_MAX_QUERY_LENGTH:
        raise InvalidQuery(
            "Query too long",
            details={"max_length": settings.SEARCH_MAX_QUERY_LENGTH},
        )

    match = _PHRASE_PATTERN.fullmatch(trimmed)
    length_class = LengthClass.SHORT if len(trimmed) < SHORT_QUERY_LENGTH else LengthClass.NORMAL

    return QueryDescriptor(
        raw_text=trimmed,
        is_phrase=match is not None,
        phrase_body=match.group(1) if match else None,
        length_class=length_class,
    )


def normalize_request(text: Any, limit: Any = None, offset: Any = None) -> NormalizedSearch:
    """Normalize query text and pagination in one step."""
    return NormalizedSearch(
        query=normalize_query(text),
        limit=clamp_limit(limit),
        offset=clamp_offset(offset),
    )
