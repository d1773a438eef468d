"""
Health Check Endpoint
"""
from fastapi import APIRouter, Query, Request
from listhub.api.deps import get_engine
from listhub.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check(
    request: Request,
    include_cache: bool = Query(False, description="Include cache counters"),
):
    """Health check endpoint for monitoring"""
    payload = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "base_url": settings.BASE_URL,
    }

    if include_cache:
        payload["cache"] = get_engine(request).cache.get_metrics_snapshot()

    return payload
