"""
Catalog Search API - Main Application Entry Point
"""

import uvicorn
from catalog_search.api import health, metrics, search
from catalog_search.core.api_envelope import error_response
from catalog_search.core.config import settings
from catalog_search.core.database import close_connections
from catalog_search.core.errors import SearchError
from catalog_search.core.logging import configure_logging, get_logger
from catalog_search.core.middleware import (
    MetricsMiddleware,
    RequestTracingMiddleware,
    SecurityHeadersMiddleware,
    get_request_id,
)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

# Configure logging
configure_logging()
logger = get_logger(__name__)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    description="""
    Catalog Search API - typo-tolerant free-text search over the food catalog

    ## Features
    - Weighted full-text, trigram and prefix matching with fallbacks
    - Relevance scoring with adaptive thresholds and `<mark>` highlighting
    - Two-tier response cache (in-process + Redis)
    - Prometheus metrics
    - Structured logging with correlation IDs
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


@app.exception_handler(SearchError)
async def search_error_handler(request: Request, exc: SearchError):
    """Render pipeline errors into the standard envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            field=getattr(exc, "field", None),
            request_id=get_request_id(request),
        ),
    )


# Add custom middleware (order matters!)
# 1. Security headers should be added first
app.add_middleware(SecurityHeadersMiddleware)

# 2. Request tracing for correlation IDs
app.add_middleware(RequestTracingMiddleware)

# 3. Metrics middleware
app.add_middleware(MetricsMiddleware)

# 4. Compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# 5. CORS middleware
# Parse ALLOWED_ORIGINS from environment (comma-separated string)
allowed_origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials="*" not in allowed_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(metrics.router)
app.include_router(search.router)


@app.on_event("startup")
async def startup_event():
    """Application startup tasks"""
    logger.info(
        "application_startup",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown tasks"""
    logger.info(
        "application_shutdown",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
    )
    await close_connections()


if __name__ == "__main__":
    uvicorn.run(
        "catalog_search.main:app",
        host="0.0.0.0",  # nosec B104 - intentional for Docker container
        port=8000,
        reload=settings.DEBUG,
    )
