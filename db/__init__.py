"""
Database module for the blog auth core.

Provides SQLAlchemy models and the engine/session factory used by the SQL stores.
"""

from db.engine import Base, create_db_engine, create_session_factory, init_db

__all__ = ["Base", "create_db_engine", "create_session_factory", "init_db"]
