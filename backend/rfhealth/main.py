"""Main FastAPI application - webhook ingestion and health API."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from . import database
from .config import settings
from .routers import webhook_router, health_router, gateways_router, devices_router
from .routers.webhook import RateLimitExceeded, rate_limit_exceeded_handler
from .services import (
    BackgroundTaskQueue,
    DeviceEventProcessor,
    EventDispatcher,
    EventStore,
    RateLimiter,
    SchedulerService,
    UplinkProcessor,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Grace period for in-flight ingestion at shutdown
SHUTDOWN_DRAIN_SECONDS = 10


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting rfhealth")

    await database.init_db(app.state.engine)
    logger.info("Database initialized")

    app.state.scheduler.start()
    logger.info(
        f"Webhook rate limit: {settings.webhook_rate_limit} requests "
        f"per {settings.webhook_rate_window_seconds:g}s"
    )

    yield

    # Shutdown
    app.state.scheduler.stop()
    await app.state.task_queue.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
    app.state.rate_limiter.dispose()
    await database.close_db(app.state.engine)
    logger.info("Shutdown complete")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(engine: AsyncEngine | None = None, rate_limiter: RateLimiter | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``engine`` and ``rate_limiter`` default to the configured ones.
    """
    app = FastAPI(
        title="rfhealth",
        description="LoRaWAN uplink ingestion with RF scoring and gateway/device health",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Shared components live on app.state for handlers and dependencies
    engine = engine or database.engine
    app.state.engine = engine
    app.state.session_factory = database.create_session_factory(engine)
    app.state.rate_limiter = rate_limiter or RateLimiter(
        settings.webhook_rate_limit,
        settings.webhook_rate_window_seconds,
    )
    app.state.task_queue = BackgroundTaskQueue()
    store = EventStore(app.state.session_factory)
    app.state.dispatcher = EventDispatcher(UplinkProcessor(store), DeviceEventProcessor(store))
    app.state.scheduler = SchedulerService(app.state.rate_limiter, settings.rate_limit_sweep_seconds)

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(webhook_router)
    app.include_router(gateways_router)
    app.include_router(devices_router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
