"""
AQUAMANAGER Core API - Security Validation

Startup checks for insecure configuration.
"""

import warnings

from aquamanager.config import settings


def validate_security_config() -> None:
    """
    Validate security configuration on startup.

    Issues warnings for insecure configurations but does not crash the application
    (to allow tests and development to run).
    """
    if settings.JWT_SECRET_KEY == "dev-secret-key-change-in-production" and settings.is_production:
        warnings.warn(
            "SECURITY WARNING: Using default JWT_SECRET_KEY in production. "
            "Set JWT_SECRET_KEY environment variable to the identity provider's signing secret.",
            UserWarning,
        )

    if "*" in str(settings.CORS_ORIGINS):
        warnings.warn(
            "SECURITY WARNING: CORS wildcard (*) detected. "
            "Set specific origins via CORS_ORIGINS.",
            UserWarning,
        )

    if settings.is_production and not settings.RESEND_API_KEY and settings.REMINDER_SCHEDULER_ENABLED:
        warnings.warn(
            "Reminder scheduler is enabled but RESEND_API_KEY is not set; "
            "reminder emails will not be delivered.",
            UserWarning,
        )
