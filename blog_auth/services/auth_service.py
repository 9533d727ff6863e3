"""Core auth service."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from blog_auth.config import AuthSettings
from blog_auth.exceptions import EmailTaken, InvalidCredentials, InvalidToken, NotFound
from blog_auth.interfaces.session_store import SessionStore
from blog_auth.interfaces.user_store import UserStore
from blog_auth.schemas import AuthResponse, PublicUser
from blog_auth.security import ACCESS, CredentialHasher, IssuedToken, TokenIssuer, utcnow
from blog_auth.services.rotation import RotationEngine

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        user_store: UserStore,
        session_store: SessionStore,
        hasher: CredentialHasher,
        token_issuer: TokenIssuer,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._users = user_store
        self._sessions = session_store
        self._hasher = hasher
        self._issuer = token_issuer
        self._clock = clock
        self._rotation = RotationEngine(session_store, token_issuer, hasher, clock=clock)

    @classmethod
    def from_settings(
        cls,
        settings: AuthSettings,
        user_store: UserStore,
        session_store: SessionStore,
    ) -> "AuthService":
        return cls(
            user_store=user_store,
            session_store=session_store,
            hasher=CredentialHasher(rounds=settings.BCRYPT_SALT_ROUNDS),
            token_issuer=TokenIssuer(settings),
        )

    def _verify_password(self, password: str, hashed: str | None) -> bool:
        # The dummy digest is built lazily, on the worker thread
        return self._hasher.verify(password, hashed or self._hasher.dummy_hash)

    def _build_response(self, user: dict, access: IssuedToken, refresh: IssuedToken) -> AuthResponse:
        return AuthResponse(
            access_token=access.token,
            refresh_token=refresh.token,
            access_expires_at=int(access.expires_at.timestamp()),
            refresh_expires_at=int(refresh.expires_at.timestamp()),
            user=PublicUser.from_record(user),
        )

    async def _issue_tokens(self, user: dict) -> AuthResponse:
        access = self._issuer.issue_access_token(user["id"], user["email"])
        refresh, _ = await self._rotation.issue(user["id"])
        return self._build_response(user, access, refresh)

    async def register(self, email: str, password: str, name: str) -> AuthResponse:
        email = email.strip().lower()
        existing = await self._users.get_by_email(email)
        if existing:
            raise EmailTaken()

        hashed_password = await asyncio.to_thread(self._hasher.hash, password)
        user = await self._users.create_user(
            {
                "email": email,
                "name": name,
                "hashed_password": hashed_password,
            }
        )
        logger.info("Registered user %s", user["id"])
        return await self._issue_tokens(user)

    async def login(self, email: str, password: str) -> AuthResponse:
        """Authenticate by email and password.

        Unknown email and wrong password raise the same InvalidCredentials,
        and both pay for one bcrypt verification.
        """
        user = await self._users.get_by_email(email.strip().lower())
        hashed = user.get("hashed_password") if user else None
        password_ok = await asyncio.to_thread(self._verify_password, password, hashed)
        if not user or not hashed or not password_ok:
            raise InvalidCredentials()

        logger.info("User %s logged in", user["id"])
        return await self._issue_tokens(user)

    async def refresh(self, refresh_token: str) -> AuthResponse:
        """Rotate a refresh token into a new access/refresh pair.

        Every failure is an InvalidToken (NoValidSession and ReuseDetected are
        subclasses carrying the same message and status).
        """
        result = await self._rotation.rotate(refresh_token)
        user = await self._users.get_by_id(result.owner_id)
        if not user:
            # Subject deleted after issuance: drop the successor we just stored
            await self._sessions.delete_all_for_owner(result.owner_id)
            raise InvalidToken()

        access = self._issuer.issue_access_token(user["id"], user["email"])
        return self._build_response(user, access, result.refresh)

    async def logout(self, user_id: str) -> None:
        """Revoke every refresh session of ``user_id``. Idempotent."""
        removed = await self._sessions.delete_all_for_owner(user_id)
        logger.info("User %s logged out; revoked %d session(s)", user_id, removed)

    async def validate_subject(self, user_id: str) -> PublicUser:
        user = await self._users.get_by_id(user_id)
        if not user:
            raise NotFound()
        return PublicUser.from_record(user)

    async def get_user_from_access(self, access_token: str) -> PublicUser:
        """Resolve the subject of an access token; a vanished subject is unauthorized."""
        payload = self._issuer.verify(access_token, ACCESS)
        try:
            return await self.validate_subject(payload["sub"])
        except NotFound as exc:
            raise InvalidToken("Invalid token") from exc

    async def purge_expired_sessions(self) -> int:
        removed = await self._sessions.delete_expired(self._clock())
        if removed:
            logger.info("Purged %d expired refresh session(s)", removed)
        return removed
