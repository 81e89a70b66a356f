"""
AQUAMANAGER Core API - Main Application

Backend service for aquarium maintenance tracking: task lifecycle,
classification and maintenance reminders.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aquamanager.config import settings
from aquamanager.database import database
from aquamanager.maintenance.router import router as maintenance_router
from aquamanager.notifications.router import router as notifications_router
from aquamanager.notifications.scheduler import ReminderScheduler
from aquamanager.security import validate_security_config

import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: Validate security configuration
    validate_security_config()
    # Startup: Connect to MongoDB
    await database.connect()

    # Startup: Start reminder scheduler
    scheduler = ReminderScheduler(database.get_database())
    await scheduler.start()

    yield

    # Shutdown: Stop scheduler
    await scheduler.stop()
    # Shutdown: Disconnect from MongoDB
    await database.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Aquarium maintenance scheduling and reminders",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# In production: configure via CORS_ORIGINS environment variable
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns the service status and version information.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


app.include_router(maintenance_router)
app.include_router(notifications_router)
