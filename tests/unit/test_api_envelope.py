"""Unit tests for API Envelope helpers.

Tests the standardized response format including:
- Success and error response creation
- Pagination metadata
- Error taxonomy codes and statuses
"""
from __future__ import annotations

import pytest

from catalog_search.core.api_envelope import (
    APIEnvelope,
    ErrorCodes,
    PaginationMetadata,
    error_response,
    success_response,
)
from catalog_search.core.errors import InvalidQuery, NoRelevantResults, RetrievalFailure


@pytest.mark.unit
def test_success_response_returns_correct_format():
    """Test that success_response creates a properly formatted dict."""
    response = success_response({"results": []}, request_id="req-1")

    assert response["success"] is True
    assert response["data"] == {"results": []}
    assert response["error"] is None
    assert response["metadata"]["request_id"] == "req-1"
    assert response["metadata"]["version"] == "1.0.0"
    # Timestamp should be ISO 8601 format with Z
    assert response["timestamp"].endswith("Z")

    # Validates as an envelope
    APIEnvelope(**response)


@pytest.mark.unit
def test_success_response_includes_pagination():
    pagination = PaginationMetadata(limit=10, offset=0, returned=10, estimated_total=25)

    response = success_response([], pagination=pagination)

    assert response["metadata"]["pagination"] == {
        "limit": 10,
        "offset": 0,
        "returned": 10,
        "estimated_total": 25,
        "has_more": True,
    }


@pytest.mark.unit
@pytest.mark.parametrize(
    "offset,returned,estimated_total,expected",
    [(0, 10, 10, False), (10, 5, 25, True), (20, 5, 25, False), (0, 3, None, None)],
)
def test_pagination_has_more(offset, returned, estimated_total, expected):
    pagination = PaginationMetadata(limit=10, offset=offset, returned=returned, estimated_total=estimated_total)

    assert pagination.has_more is expected


@pytest.mark.unit
def test_error_response_returns_correct_format():
    response = error_response(
        code=ErrorCodes.VALIDATION_ERROR,
        message="Query too short or not meaningful",
        field="q",
        request_id="req-2",
    )

    assert response["success"] is False
    assert response["data"] is None
    assert response["error"] == {
        "code": "VALIDATION_ERROR",
        "message": "Query too short or not meaningful",
        "details": None,
        "field": "q",
    }
    assert response["metadata"]["request_id"] == "req-2"
    APIEnvelope(**response)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error,code,status_code",
    [
        (InvalidQuery("bad"), ErrorCodes.VALIDATION_ERROR, 400),
        (NoRelevantResults("none"), ErrorCodes.NOT_FOUND, 404),
        (RetrievalFailure("down"), ErrorCodes.DATABASE_ERROR, 500),
    ],
)
def test_search_error_codes(error, code, status_code):
    assert error.code == code
    assert error.status_code == status_code
