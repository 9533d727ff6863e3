"""Auth dependency helpers for the route layer."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status

from blog_auth.config import AuthSettings, get_settings
from blog_auth.exceptions import AuthException
from blog_auth.schemas import PublicUser
from blog_auth.services.auth_service import AuthService
from blog_auth.stores.memory_store import MemorySessionStore, MemoryUserStore
from blog_auth.stores.sql_store import SQLSessionStore, SQLUserStore
from db.engine import create_db_engine, create_session_factory, init_db


def build_auth_service(settings: AuthSettings) -> AuthService:
    """Wire the auth service with stores selected by AUTH_STORE."""
    if settings.AUTH_STORE == "sql":
        engine = create_db_engine(settings.DATABASE_URL)
        init_db(engine)
        session_factory = create_session_factory(engine)
        users, sessions = SQLUserStore(session_factory), SQLSessionStore(session_factory)
    else:
        # In-memory stores for development/testing
        users, sessions = MemoryUserStore(), MemorySessionStore()
    return AuthService.from_settings(settings, user_store=users, session_store=sessions)


@lru_cache
def get_auth_service() -> AuthService:
    return build_auth_service(get_settings())


def to_http_exception(exc: AuthException) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    authorization: str | None = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> PublicUser:
    """Guard for operations that require a verified subject."""
    access_token = _bearer_token(authorization)
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return await auth_service.get_user_from_access(access_token)
    except AuthException as exc:
        raise to_http_exception(exc) from exc
