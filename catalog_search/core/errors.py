"""
Search error taxonomy.

Three outcomes leave the pipeline as exceptions:
- InvalidQuery: caller-fixable input problems (empty, too short, too long)
- NoRelevantResults: nothing survived the cascade and the acceptance policy
- RetrievalFailure: the storage collaborator failed or the deadline expired

Each error carries the machine-readable code and HTTP status the API layer
renders into the standard envelope.
"""

from typing import Any, Dict, Optional

from catalog_search.core.api_envelope import ErrorCodes


class SearchError(Exception):
    """Base search error"""

    code: str = ErrorCodes.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidQuery(SearchError):
    """Query text or parameters rejected before retrieval"""

    code = ErrorCodes.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, field: str = "q", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field


class NoRelevantResults(SearchError):
    """No candidate passed the acceptance threshold"""

    code = ErrorCodes.NOT_FOUND
    status_code = 404


class RetrievalFailure(SearchError):
    """Storage collaborator unavailable, request malformed, or deadline exceeded"""

    code = ErrorCodes.DATABASE_ERROR
    status_code = 500
