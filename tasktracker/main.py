"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasktracker.api import auth, notifications, tasks
from tasktracker.config import get_settings
from tasktracker.database import init_db
from tasktracker.services.scheduler import Scheduler
from tasktracker.tasks.reminders import run_reminder_scan

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if settings.create_tables:
        init_db()

    # Without celery-beat (local development) the scanner runs in-process
    scheduler = None
    if settings.run_scanner_in_process:
        scheduler = Scheduler()
        scheduler.add_job("scan-due-reminders", run_reminder_scan, settings.scan_interval_seconds)
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()


app = FastAPI(
    title="Task Tracker API",
    description="Personal task tracker with priority-driven reminder escalation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register routers
app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(notifications.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
