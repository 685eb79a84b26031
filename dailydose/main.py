from fastapi import FastAPI
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import uvicorn
import logging

from .config import get_settings
from .database import engine, async_session
from .models import Base
from .api.v1.router import api_router
from .integrations import SlackClient, SlackConfig, IntegrationError
from .services.scheduler_service import TeamScheduleRegistry
from .utils.logging import setup_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    logger.info("Starting Daily Dose application")

    # Create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.transport = None
    app.state.registry = None

    transport = SlackClient(SlackConfig(
        bot_token=settings.slack_bot_token
    ))
    try:
        await transport.connect()
        app.state.transport = transport
    except IntegrationError as e:
        logger.error(f"Slack transport unavailable, standup jobs disabled: {str(e)}")

    if app.state.transport is not None and settings.enable_scheduled_tasks:
        registry = TeamScheduleRegistry(async_session, transport)
        await registry.start()
        app.state.registry = registry

    yield

    # Shutdown
    if app.state.registry is not None:
        app.state.registry.shutdown()
    if app.state.transport is not None:
        await app.state.transport.disconnect()
    logger.info("Shutting down Daily Dose application")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Daily standup reminders, collection and summaries for chat teams",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    registry = getattr(app.state, "registry", None)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "scheduler_running": bool(registry and registry.running),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


if __name__ == "__main__":
    uvicorn.run(
        "dailydose.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
