"""
Standard API response envelope.

Every endpoint answers with the same outer structure so clients can tell a
successful page from a validation problem, an empty search, or a server-side
failure without inspecting status codes alone.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class APIEnvelope(BaseModel):
    """Standard API response envelope."""

    success: bool
    data: Optional[Any] = None
    error: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    timestamp: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "data": {"total": 1, "count": 1, "limit": 10, "offset": 0, "results": []},
                "error": None,
                "metadata": {
                    "request_id": "550e8400-e29b-41d4-a716-446655440000",
                    "version": "1.0.0",
                },
                "timestamp": "2026-01-01T00:00:00.000Z",
            }
        }
    )


class PaginationMetadata(BaseModel):
    """Offset pagination metadata for search responses."""

    limit: int
    offset: int
    returned: int
    estimated_total: Optional[int] = None
    has_more: Optional[bool] = None

    @model_validator(mode="after")
    def compute_has_more(self):
        """Derive has_more from the advisory total when not provided."""
        if self.has_more is None and self.estimated_total is not None:
            self.has_more = self.offset + self.returned < self.estimated_total
        return self


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def success_response(
    data: Any,
    request_id: Optional[str] = None,
    version: str = "1.0.0",
    pagination: Optional[PaginationMetadata] = None,
    **extra_metadata
) -> Dict[str, Any]:
    """
    Create a successful API response.

    Args:
        data: Response data
        request_id: Request correlation ID
        version: API version
        pagination: Pagination metadata (if applicable)
        extra_metadata: Additional metadata fields

    Returns:
        API envelope dictionary
    """
    metadata = {
        "version": version,
        **({"request_id": request_id} if request_id else {}),
        **({"pagination": pagination.model_dump()} if pagination else {}),
        **extra_metadata,
    }

    return {
        "success": True,
        "data": data,
        "error": None,
        "metadata": metadata,
        "timestamp": _timestamp(),
    }


def error_response(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None,
    version: str = "1.0.0",
    **extra_metadata
) -> Dict[str, Any]:
    """
    Create an error API response.

    Args:
        code: Machine-readable error code (e.g., "VALIDATION_ERROR")
        message: Human-readable error message
        details: Additional error details
        field: Field name if validation error
        request_id: Request correlation ID
        version: API version
        extra_metadata: Additional metadata fields

    Returns:
        API envelope dictionary
    """
    metadata = {
        "version": version,
        **({"request_id": request_id} if request_id else {}),
        **extra_metadata,
    }

    error = {"code": code, "message": message, "details": details, "field": field}

    return {
        "success": False,
        "data": None,
        "error": error,
        "metadata": metadata,
        "timestamp": _timestamp(),
    }


class ErrorCodes:
    """Standard error codes for consistent error handling."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Resource errors (404)
    NOT_FOUND = "NOT_FOUND"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
