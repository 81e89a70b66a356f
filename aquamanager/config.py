"""
AQUAMANAGER Core API - Configuration Module

This module handles application configuration via environment variables.
"""

import os
from typing import Optional


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "AQUAMANAGER Core API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # MongoDB
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://mongodb:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "aquamanager")

    # CORS - Allowed origins for client requests
    # Multiple origins can be comma-separated
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
        if origin.strip()
    ]

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # JWT validation (tokens are issued by the identity provider)
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

    # Maintenance classification
    DUE_SOON_DAYS: int = int(os.getenv("DUE_SOON_DAYS", "3"))

    # Reminder delivery (Resend HTTP API)
    RESEND_API_KEY: Optional[str] = os.getenv("RESEND_API_KEY", None)
    RESEND_API_URL: str = os.getenv("RESEND_API_URL", "https://api.resend.com")
    REMINDER_FROM_ADDRESS: str = os.getenv(
        "REMINDER_FROM_ADDRESS", "AquaManager <onboarding@resend.dev>"
    )

    # Reminder scheduler
    REMINDER_SCHEDULER_ENABLED: bool = os.getenv("REMINDER_SCHEDULER_ENABLED", "false").lower() == "true"
    REMINDER_POLL_INTERVAL_SECONDS: int = int(os.getenv("REMINDER_POLL_INTERVAL_SECONDS", "1800"))

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
