"""
Health check routes for the customer service
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, HTTPException, Request, status

from app.utils.database import check_database

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service health check"""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "service": "customer-service",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/health/database")
async def database_health_check(request: Request):
    """Database connection health check"""
    pool = getattr(request.app.state, "pool", None)
    if pool is None or not await check_database(pool):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed"
        )

    return {
        "status": "healthy",
        "database": "connected",
        "test_query": "passed"
    }
