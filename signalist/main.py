# signalist/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signalist.core.config import settings
from signalist.db import connect_to_mongo, close_mongo_connection, get_db, is_connected
from signalist.logger import get_logger
from signalist.middleware.request_logger import RequestLoggerMiddleware
from signalist.routers import auth, news, stocks, watchlist
from signalist.services.finnhub_client import close_finnhub_client
from signalist.tasks.scheduler import get_scheduler_status, shutdown_scheduler, start_scheduler

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect Mongo and start the scheduler; undo both on shutdown"""
    # ========== STARTUP ==========
    log.info("Starting %s...", settings.APP_NAME)

    try:
        await connect_to_mongo()
    except Exception as e:
        log.error(f"Failed to connect to MongoDB: {e}")
        raise

    if settings.ENABLE_SCHEDULER:
        try:
            scheduler = start_scheduler()
            log.info("Scheduler started with jobs: %s", [job.id for job in scheduler.get_jobs()])
        except Exception as e:
            log.exception("Failed to start scheduler: %s", e)

    if not settings.FINNHUB_API_KEY:
        log.warning("FINNHUB_API_KEY is not set; news, quotes and search will fail")

    log.info("Application startup complete!")

    yield

    # ========== SHUTDOWN ==========
    log.info("Shutting down %s...", settings.APP_NAME)

    try:
        shutdown_scheduler()
    except Exception as e:
        log.exception("Failed to stop scheduler: %s", e)

    try:
        await close_finnhub_client()
    except Exception as e:
        log.error(f"Error closing Finnhub client: {e}")

    try:
        await close_mongo_connection()
    except Exception as e:
        log.error(f"Error closing MongoDB connection: {e}")

    log.info("Application shutdown complete!")


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)

# CORS first
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS or [settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggerMiddleware)

# ========== ROUTERS ==========
app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(news.router, prefix=settings.API_PREFIX)
app.include_router(watchlist.router, prefix=settings.API_PREFIX)
app.include_router(stocks.router, prefix=settings.API_PREFIX)


# ========== ROOT ENDPOINTS ==========
@app.get("/health")
async def health():
    """Liveness plus a MongoDB ping"""
    mongodb_status = "disconnected"
    if is_connected():
        try:
            await get_db().command("ping")
            mongodb_status = "connected"
        except Exception as e:
            log.warning(f"MongoDB ping failed: {e}")
    return {"status": "ok", "database": mongodb_status}


@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "scheduler": get_scheduler_status(),
        "api_endpoints": {
            "auth": f"{settings.API_PREFIX}/auth/*",
            "news": f"{settings.API_PREFIX}/news",
            "watchlist": f"{settings.API_PREFIX}/watchlist",
            "stocks": f"{settings.API_PREFIX}/stocks/*",
        },
    }
