"""
Authentication and refresh-session core for the blog backend.

Provides credential hashing, JWT issuance, refresh-token rotation with reuse
detection, and the AuthService orchestrating them.
"""

from blog_auth.config import AuthSettings, get_settings
from blog_auth.exceptions import (
    AuthException,
    EmailTaken,
    InvalidCredentials,
    InvalidToken,
    NoValidSession,
    NotFound,
    ReuseDetected,
)
from blog_auth.services.auth_service import AuthService

__all__ = [
    "AuthSettings",
    "get_settings",
    "AuthService",
    # Errors
    "AuthException",
    "EmailTaken",
    "InvalidCredentials",
    "InvalidToken",
    "NoValidSession",
    "NotFound",
    "ReuseDetected",
]
