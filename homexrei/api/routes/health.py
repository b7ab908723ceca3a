"""
Liveness and readiness checks.
/ready checks the database and Redis (breaker state, Celery broker) and
reports whether Stripe keys are present; a missing key does not fail it.
"""
import logging

import redis
from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homexrei.core.config import settings
from homexrei.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/ready")
def readiness(response: Response, db: Session = Depends(get_db)) -> dict:
    checks: dict[str, str] = {}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        checks["database"] = f"error: {e.__class__.__name__}"

    try:
        redis.Redis.from_url(settings.redis_url, socket_connect_timeout=2).ping()
        checks["redis"] = "ok"
    except redis.RedisError as e:
        checks["redis"] = f"error: {e.__class__.__name__}"

    ready = all(v == "ok" for v in checks.values())
    if not ready:
        response.status_code = 503
        logger.warning("readiness_failed", extra={"error": checks})
    return {
        "status": "ready" if ready else "not_ready",
        "checks": checks,
        "stripe_configured": settings.stripe_configured,
    }
