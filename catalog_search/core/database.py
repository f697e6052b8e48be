"""
Database and cache connection management

Provides:
- Async PostgreSQL engine and session factory with pooling
- Async Redis client for the response cache
- Connectivity checks used by the readiness endpoint
"""

import redis.asyncio as redis
import structlog
from catalog_search.core.config import settings
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

logger = structlog.get_logger(__name__)

Base = declarative_base()

# PostgreSQL - async engine; no connection is opened until first use
async_engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_recycle=settings.DB_POOL_RECYCLE,
    pool_timeout=settings.DB_POOL_TIMEOUT,
    echo_pool=settings.DEBUG,
)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def check_postgres_connection() -> bool:
    """Check if PostgreSQL is accessible"""
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("postgres_check_failed", error=str(e))
        return False


# Redis - response cache database
redis_client = redis.Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    password=settings.REDIS_PASSWORD,
    db=settings.REDIS_DB,
    decode_responses=True,
    socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
)


async def check_redis_connection() -> bool:
    """Check if Redis is accessible"""
    try:
        await redis_client.ping()
        return True
    except Exception as e:
        logger.warning("redis_check_failed", error=str(e))
        return False


async def close_connections() -> None:
    """Dispose pooled connections on shutdown."""
    await async_engine.dispose()
    await redis_client.aclose()
