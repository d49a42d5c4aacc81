from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.routers import health
from app.routers import properties
from app.core.logging import setup_logging
from fastapi_limiter import FastAPILimiter
from redis.asyncio import Redis
from structlog import get_logger
from app.config import settings
from app.dependencies import services

logger = get_logger()

app = FastAPI(title="Property Catalog Microservice")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["https://*.onrender.com", "https://*.vercel.app"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(health.router)
app.include_router(properties.router)

@app.on_event("startup")
async def startup_event():
    setup_logging()
    if settings.RATE_LIMIT_ENABLED:
        redis = await Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        await FastAPILimiter.init(redis)
    logger.info("Property catalog started", rate_limit=settings.RATE_LIMIT_ENABLED)

@app.on_event("shutdown")
async def shutdown_event():
    await services.events.aclose()
    if settings.RATE_LIMIT_ENABLED:
        await FastAPILimiter.close()
    logger.info("Property catalog stopped")
