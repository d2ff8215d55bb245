"""Main FastAPI application for the recurring room message service."""
import logging
import os

from fastapi import FastAPI

from app.db.config import engine
from app.db.init import init_db
from app.middleware.cors import add_cors_middleware
from app.routers import recurring_messages_router
from app.services.tick_scheduler import RECURRING_TICK_SECONDS, TickScheduler
from sqlmodel import Session

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Room Automations API",
    description="Recurring chat messages fired into rooms on a calendar cadence",
    version="1.0.0",
)

# Add CORS middleware
add_cors_middleware(app)


@app.on_event("startup")
async def startup_event():
    """Initialize database and the optional recurring message tick loop."""
    try:
        init_db()
    except Exception as e:
        logger.warning(f"Database initialization failed: {str(e)}")
        logger.warning("Server will continue but database operations may fail.")

    app.state.tick_scheduler = None
    if RECURRING_TICK_SECONDS > 0:
        scheduler = TickScheduler(lambda: Session(engine), RECURRING_TICK_SECONDS)
        scheduler.start()
        app.state.tick_scheduler = scheduler
    else:
        logger.info("RECURRING_TICK_SECONDS not set, recurring messages fire only on manual ticks")

    logger.info("Application startup complete.")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the tick loop if it was started."""
    scheduler = getattr(app.state, "tick_scheduler", None)
    if scheduler is not None:
        await scheduler.stop()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    scheduler = getattr(app.state, "tick_scheduler", None)
    return {
        "status": "healthy",
        "version": "1.0.0",
        "tick_scheduler_running": bool(scheduler and scheduler.running),
    }


@app.get("/")
async def root():
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Room Automations API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(recurring_messages_router, prefix="/api")  # /api/rooms/{room_id}/recurring-messages


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
