"""Prometheus metrics endpoint.

Exposes request, search pipeline and response cache metrics in the
Prometheus text format. No authentication (secure at infrastructure level).
"""
from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(prefix="/metrics", tags=["observability"])


@router.get("", response_class=Response)
async def prometheus_metrics():
    """Prometheus-formatted metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
