"""
SQLAlchemy models for the blog auth core.

All models inherit from db.engine.Base.
"""

from db.models.user import User
from db.models.auth import RefreshSessionRecord

__all__ = [
    "User",
    "RefreshSessionRecord",
]
