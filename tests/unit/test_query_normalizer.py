"""Unit tests for query normalization.

Covers trimming and length validation, phrase detection, length classes and
lenient pagination parsing.
"""
from __future__ import annotations

import pytest

from catalog_search.core.errors import InvalidQuery
from catalog_search.services.query_normalizer import (
    LengthClass,
    QueryDescriptor,
    clamp_limit,
    clamp_offset,
    normalize_query,
    normalize_request,
)


# ============================================================================
# Validation
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize("text", [None, "", "   ", "\t\n", 42])
def test_missing_or_blank_query_is_rejected(text):
    with pytest.raises(InvalidQuery) as exc_info:
        normalize_query(text)

    assert exc_info.value.status_code == 400
    assert exc_info.value.field == "q"


@pytest.mark.unit
def test_single_character_query_is_rejected_after_trim():
    with pytest.raises(InvalidQuery) as exc_info:
        normalize_query("  a  ")

    assert "too short" in exc_info.value.message


@pytest.mark.unit
def test_two_character_query_is_accepted():
    descriptor = normalize_query("ab")

    assert descriptor.raw_text == "ab"
    assert descriptor.length_class == LengthClass.SHORT


@pytest.mark.unit
def test_overlong_query_is_rejected():
    with pytest.raises(InvalidQuery) as exc_info:
        normalize_query("x" * 257)

    assert exc_info.value.details == {"max_length": 256}


@pytest.mark.unit
def test_query_is_trimmed():
    assert normalize_query("  almond milk \n").raw_text == "almond milk"


# ============================================================================
# Phrase detection
# ============================================================================


@pytest.mark.unit
def test_quoted_query_is_a_phrase():
    descriptor = normalize_query('"peanut butter"')

    assert descriptor.is_phrase is True
    assert descriptor.phrase_body == "peanut butter"
    assert descriptor.search_text == "peanut butter"
    assert descriptor.raw_text == '"peanut butter"'


@pytest.mark.unit
@pytest.mark.parametrize("text", ['"peanut butter', 'peanut butter"', 'say "cheese"', '""'])
def test_partially_quoted_query_is_not_a_phrase(text):
    descriptor = normalize_query(text)

    assert descriptor.is_phrase is False
    assert descriptor.phrase_body is None
    assert descriptor.search_text == text


@pytest.mark.unit
def test_phrase_descriptor_requires_body():
    with pytest.raises(ValueError):
        QueryDescriptor(raw_text='"x"', is_phrase=True)


@pytest.mark.unit
def test_tokens_split_on_whitespace():
    assert normalize_query("  almond   milk  ").tokens == ["almond", "milk"]
    assert normalize_query('"oat  milk"').tokens == ["oat", "milk"]


# ============================================================================
# Length class
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "text,expected",
    [
        ("egg", LengthClass.SHORT),
        ("apple", LengthClass.SHORT),
        ("banana", LengthClass.NORMAL),
        ("  apple  ", LengthClass.SHORT),
        ("chicken breast", LengthClass.NORMAL),
    ],
)
def test_length_class_boundary(text, expected):
    assert normalize_query(text).length_class == expected


# ============================================================================
# Pagination
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [
        (None, 10),
        ("", 10),
        ("abc", 10),
        ("5", 5),
        (" 7 ", 7),
        (0, 1),
        ("-3", 1),
        (50, 50),
        ("51", 50),
        (1000, 50),
        (True, 10),
    ],
)
def test_clamp_limit(value, expected):
    assert clamp_limit(value) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [(None, 0), ("x", 0), ("-1", 0), (-20, 0), ("15", 15), (3, 3)],
)
def test_clamp_offset(value, expected):
    assert clamp_offset(value) == expected


@pytest.mark.unit
def test_normalize_request_combines_query_and_pagination():
    request = normalize_request("almond", "5", "abc")

    assert request.query.raw_text == "almond"
    assert request.limit == 5
    assert request.offset == 0


@pytest.mark.unit
def test_normalize_request_validates_query_first():
    with pytest.raises(InvalidQuery):
        normalize_request("", 5, 0)
