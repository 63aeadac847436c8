"""AdPulse — FastAPI Application Entry Point.

Operations surface for the Meta ingestion job: connection management,
manual sync trigger and status, and the optional nightly scheduler.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from adpulse import database
from adpulse.config import Settings
from adpulse.api.meta_routes import router as meta_router
from adpulse.api.sync_routes import router as sync_router
from adpulse.scheduler.jobs import start_scheduler, stop_scheduler
from adpulse.sync.context import SyncContext
from adpulse.sync.runner import SyncRunner
from adpulse.core.logging import get_logger

logger = get_logger("main")

VERSION = "1.0.0"


def create_app(ctx: Optional[SyncContext] = None) -> FastAPI:
    """Build the app; ``ctx`` is created from the environment when omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle."""
        logger.info("🚀 AdPulse starting up...")
        context = ctx or SyncContext.from_settings(Settings())
        if database.test_connection(context.engine):
            try:
                database.init_db(context.engine)
            except Exception as e:
                logger.error(f"❌ Table creation failed: {e}")
        else:
            logger.error("❌ Database NOT connected — endpoints will fail")

        runner = SyncRunner(context)
        app.state.ctx = context
        app.state.runner = runner
        scheduler = start_scheduler(runner)
        yield
        stop_scheduler(scheduler)
        if ctx is None:
            context.close()
        logger.info("AdPulse shut down")

    app = FastAPI(
        title="AdPulse",
        description="Meta ads ingestion for the life-insurance marketing dashboard.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.include_router(meta_router)
    app.include_router(sync_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "adpulse", "version": VERSION}

    return app


app = create_app()
