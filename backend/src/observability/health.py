"""Health check utilities for the documents API.

Provides health and readiness checks for the database, the Celery broker
and object storage.
"""

import time
from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.orm import Session
import redis

from config import get_settings
from domain.documents.ports.object_storage_port import ObjectStoragePort
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status enum."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Check database connectivity with a trivial query."""
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Database error: {str(e)}"
        )


def check_redis_health() -> ComponentHealth:
    """Check connectivity of the Redis instance backing the task queue.

    An unreachable broker only affects asynchronous uploads, so the
    component is reported DEGRADED rather than UNHEALTHY.
    """
    try:
        client = redis.from_url(
            get_settings().REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

        start = time.time()
        client.ping()
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Redis connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message=f"Redis error: {str(e)}"
        )


def check_object_storage_health(storage: Optional[ObjectStoragePort]) -> ComponentHealth:
    """Check object storage connectivity through the configured adapter."""
    if storage is None:
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message="Object storage is not configured"
        )

    try:
        start = time.time()
        storage.ping()
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Object storage connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.error(f"Object storage health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Object storage error: {str(e)}"
        )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health from component statuses."""
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
