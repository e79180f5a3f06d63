"""
Operational routes - CSRF bootstrap, cache inspection, health
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import TTLCache
from ..config import settings
from ..db import get_db
from ..dependencies import get_cache, get_problem_store
from ..schemas import (
    CacheStats,
    CacheStatsResponse,
    CSRFTokenResponse,
    DatabaseCheckResponse,
    HealthResponse,
    MessageResponse,
    VersionResponse,
)
from ..security.csrf import issue_token
from ..services.problem_store import ProblemStore
from ..logger import logger

router = APIRouter(tags=["System"])


@router.get("/api/csrf-token", response_model=CSRFTokenResponse)
async def csrf_token(request: Request):
    """Issue a CSRF token bound to the caller's session"""
    return CSRFTokenResponse(csrfToken=issue_token(request.session))


@router.get("/api/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(cache: TTLCache = Depends(get_cache)):
    """Cache statistics and current keys"""
    return CacheStatsResponse(
        cacheStats=CacheStats(**cache.stats()),
        description="Cache statistics and current keys",
    )


@router.post("/api/cache/clear", response_model=MessageResponse)
async def cache_clear(cache: TTLCache = Depends(get_cache)):
    """Drop every cached entry"""
    cache.clear()
    logger.info("Cache cleared")
    return MessageResponse(message="Cache cleared successfully")


@router.get("/api/test-db", response_model=DatabaseCheckResponse)
async def test_db(
    store: ProblemStore = Depends(get_problem_store),
    db: AsyncSession = Depends(get_db),
):
    """Verify the database connection"""
    count = await store.count(db)
    return DatabaseCheckResponse(message="Database connection successful!", problemCount=count)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(status="ok")


@router.get("/version", response_model=VersionResponse)
async def version():
    """Service version"""
    return VersionResponse(version=settings.APP_VERSION)
