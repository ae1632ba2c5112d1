"""
Seat Reservation API - Main Application Entry Point

A booking service demonstrating:
- Capacity-checked single-seat reservation under concurrent load
- Duplicate prevention backed by a unique constraint, short-circuited by a
  Redis dedup cache
- Structured logging with request correlation
- Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from booking_core.core.config import get_settings
from booking_core.core.logging import setup_logging, get_logger
from booking_core.core.metrics import metrics_endpoint
from booking_core.api.errors import register_exception_handlers
from booking_core.api.router import api_router
from booking_core.api.middleware import RequestLoggingMiddleware
from booking_core.db.session import get_engine, get_session_factory
from booking_core.infrastructure.redis_client import get_redis, close_redis
from booking_core.services.dedup_cache_service import build_dedup_cache
from booking_core.services.reservation_service import ReservationEngine

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without dedup cache")

    cache = build_dedup_cache(redis_client, ttl=settings.DEDUP_CACHE_TTL, timeout=settings.CACHE_TIMEOUT)
    app.state.db_engine = get_engine()
    app.state.redis = redis_client
    app.state.reservation_engine = ReservationEngine(get_session_factory(), cache, settings)

    yield

    await cache.drain()
    await close_redis()
    await app.state.db_engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Capacity-checked single-seat event reservations",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Pings the database and, when enabled, Redis."""
    try:
        async with request.app.state.db_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        redis_client = request.app.state.redis
        if redis_client is not None:
            await redis_client.ping()
    except Exception as e:
        get_logger(__name__).error("health_check_failed", error=str(e))
        return JSONResponse(status_code=503, content={"status": "ERROR", "error": "dependency unavailable"})

    return {
        "status": "OK",
        "database": "connected",
        "redis": "connected" if redis_client is not None else "disabled",
        "version": settings.APP_VERSION,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()
