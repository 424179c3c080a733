"""Health check endpoint."""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api.dependencies import get_cache
from adapter.mongodb.connection import get_mongodb_client
from port.cache import CachePort

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(cache: CachePort = Depends(get_cache)):
    """Health check endpoint with dependency status.

    MongoDB is required; Redis only backs the signup duplicate guard, so
    an unreachable cache degrades the report without failing it.
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "services": {}
    }

    overall_healthy = True

    try:
        mongo_client = await get_mongodb_client()
        if mongo_client:
            health_status["services"]["mongodb"] = {
                "status": "healthy",
                "message": "Connection successful"
            }
        else:
            health_status["services"]["mongodb"] = {
                "status": "unhealthy",
                "message": "Connection failed or not configured"
            }
            overall_healthy = False
    except Exception as e:
        health_status["services"]["mongodb"] = {
            "status": "unhealthy",
            "message": f"Connection error: {str(e)[:200]}"
        }
        overall_healthy = False

    try:
        redis_ok = await cache.ping()
    except Exception as e:
        logger.warning("Cache ping raised", extra={"error": str(e)[:200]})
        redis_ok = False
    health_status["services"]["redis"] = {
        "status": "healthy" if redis_ok else "unhealthy",
        "message": "Connection successful" if redis_ok else "Connection failed or not configured",
    }

    if not overall_healthy:
        health_status["status"] = "unhealthy"
    elif not redis_ok:
        health_status["status"] = "degraded"

    status_code = status.HTTP_200_OK if overall_healthy else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        content=health_status,
        status_code=status_code
    )
