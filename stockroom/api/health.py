from fastapi import APIRouter
from sqlalchemy import text
import redis

from stockroom.database import engine
from stockroom.utils.cache import redis_client

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic liveness check."
)
def health_check():
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check that the database and Redis are reachable."
)
def readiness_check():
    """
    Readiness check for all dependencies.

    Returns status of:
    - Database connection
    - Redis connection (category cache and Celery broker)
    """
    checks = {
        "database": False,
        "redis": False
    }

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        checks["database_error"] = str(e)

    try:
        redis_client.ping()
        checks["redis"] = True
    except redis.RedisError as e:
        checks["redis_error"] = str(e)

    all_healthy = checks["database"] and checks["redis"]

    return {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks
    }
