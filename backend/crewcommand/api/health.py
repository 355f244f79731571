"""Health check and metrics endpoints"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from crewcommand import __version__
from crewcommand.database import AsyncSessionLocal
from crewcommand.monitoring.metrics import metrics_collector
from crewcommand.services.redis_service import RedisService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def basic_health_check():
    """
    Basic health check endpoint (no authentication required)

    Returns simple health status and timestamp
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    }


@router.get("/api/v1/health", status_code=status.HTTP_200_OK)
async def detailed_health_check():
    """
    Detailed health check with dependency status (no authentication required)

    Checks connectivity to the database and Redis.
    """
    services = {}
    overall_status = "healthy"

    try:
        async with AsyncSessionLocal() as db:
            result = await db.execute(text("SELECT 1"))
            result.scalar_one()
        services["database"] = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        services["database"] = f"disconnected: {str(e)}"
        overall_status = "degraded"

    try:
        await RedisService().ping()
        services["redis"] = "connected"
    except (RedisError, OSError) as e:
        logger.error(f"Redis health check failed: {e}")
        services["redis"] = f"disconnected: {str(e)}"
        overall_status = "degraded"

    return {
        "status": overall_status,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "services": services,
        "latency_ms": {
            service: metrics_collector.get_latency_percentiles(service)
            for service in ("language_model", "speech")
        },
    }


@router.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus scrape endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
