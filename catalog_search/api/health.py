"""
Health check endpoints
"""

import time
from typing import Any, Dict

from catalog_search.api.search import get_cache_service
from catalog_search.core.config import settings
from catalog_search.core.database import check_postgres_connection, check_redis_connection
from catalog_search.core.logging import get_logger
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

router = APIRouter()
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response model"""

    status: str
    version: str
    timestamp: float


class ReadinessResponse(BaseModel):
    """Readiness check response model"""

    status: str
    checks: Dict[str, bool]
    cache: Dict[str, Any]
    timestamp: float


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Basic health check endpoint
    Returns 200 if the service is running
    """
    logger.debug("health_check_requested")
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        timestamp=time.time(),
    )


@router.get("/ready", response_class=JSONResponse)
async def readiness_check():
    """
    Readiness check endpoint
    Postgres is required. Redis is reported but does not gate readiness,
    since search keeps working on the in-process cache alone.
    Returns 200 when Postgres is reachable, 503 otherwise
    """
    logger.debug("readiness_check_requested")

    checks = {
        "postgres": await check_postgres_connection(),
        "redis": await check_redis_connection(),
    }

    ready = checks["postgres"]
    response_status = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    if not ready:
        logger.warning("readiness_check_failed", checks=checks)
    elif not checks["redis"]:
        logger.warning("readiness_check_degraded", checks=checks)
    else:
        logger.debug("readiness_check_passed")

    content = ReadinessResponse(
        status="ready" if ready else "not_ready",
        checks=checks,
        cache=get_cache_service().get_stats(),
        timestamp=time.time(),
    )
    return JSONResponse(status_code=response_status, content=content.model_dump())
