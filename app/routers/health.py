from fastapi import APIRouter
from structlog import get_logger
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import text

from app.config import settings
from app.db import engine

logger = get_logger()
router = APIRouter(prefix="/api/v1", tags=["health"])

@router.get("/health")
async def health():
    return {"status": "ok"}

@router.get("/health/ready")
async def readiness():
    details = {"status": "ok", "checks": {}}

    # Redis check
    try:
        redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        pong = await redis.ping()
        await redis.aclose()
        details["checks"]["redis"] = "ok" if pong else "fail"
    except (RedisError, OSError) as e:
        logger.warning("health redis fail", error=str(e))
        details["checks"]["redis"] = "fail"
        details["status"] = "degraded"

    # Database check
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        details["checks"]["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("health db fail", error=str(e))
        details["checks"]["database"] = "fail"
        details["status"] = "degraded"

    return details
