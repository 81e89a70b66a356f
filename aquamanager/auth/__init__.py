"""
AQUAMANAGER Core API - Authentication Module

Bearer token validation for tokens issued by the identity provider.
"""

from aquamanager.auth.dependencies import get_current_user, CurrentUser

__all__ = ["get_current_user", "CurrentUser"]
