"""Refresh-token rotation with reuse detection.

A refresh token lives as ISSUED until it is CONSUMED (rotated into a
successor), REVOKED (logout or a reuse sweep) or EXPIRED. All three are
terminal: presenting such a token again is either rejected or, when the
signature is still good, treated as a replay that revokes every session of
its owner.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from blog_auth.exceptions import NoValidSession, ReuseDetected
from blog_auth.interfaces.session_store import RefreshSession, SessionStore
from blog_auth.security import REFRESH, CredentialHasher, IssuedToken, TokenIssuer, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RotationResult:
    owner_id: str
    refresh: IssuedToken
    session: RefreshSession


class RotationEngine:
    def __init__(
        self,
        session_store: SessionStore,
        token_issuer: TokenIssuer,
        hasher: CredentialHasher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._sessions = session_store
        self._issuer = token_issuer
        self._hasher = hasher
        self._clock = clock

    async def _mint(self, owner_id: str) -> tuple[IssuedToken, str]:
        refresh = self._issuer.issue_refresh_token(owner_id)
        secret_hash = await asyncio.to_thread(self._hasher.hash, refresh.token)
        return refresh, secret_hash

    async def issue(self, owner_id: str) -> tuple[IssuedToken, RefreshSession]:
        """Mint a refresh token for a fresh login and persist its session row."""
        refresh, secret_hash = await self._mint(owner_id)
        session = await self._sessions.create(owner_id, secret_hash, refresh.expires_at)
        return refresh, session

    async def _find_match(self, token: str, candidates: list[RefreshSession]) -> RefreshSession | None:
        for candidate in candidates:
            if await asyncio.to_thread(self._hasher.verify, token, candidate.secret_hash):
                return candidate
        return None

    async def _revoke_all(self, owner_id: str, why: str) -> None:
        removed = await self._sessions.delete_all_for_owner(owner_id)
        logger.warning(
            "Refresh token reuse detected for user %s (%s); revoked %d session(s)",
            owner_id,
            why,
            removed,
        )

    async def rotate(self, presented_token: str) -> RotationResult:
        """Exchange a refresh token for a successor.

        Raises InvalidToken before touching the store if the token is forged,
        expired or not a refresh token; NoValidSession if the owner has no
        live session; ReuseDetected (after revoking every session of the
        owner) if the token was already consumed or revoked, or a concurrent
        rotation consumed it first. Store failures propagate unchanged.
        """
        payload = self._issuer.verify(presented_token, REFRESH)
        owner_id = payload["sub"]

        candidates = await self._sessions.list_valid(owner_id, self._clock())
        if not candidates:
            raise NoValidSession()

        matched = await self._find_match(presented_token, candidates)
        if matched is None:
            await self._revoke_all(owner_id, "no matching session")
            raise ReuseDetected()

        refresh, secret_hash = await self._mint(owner_id)
        successor = await self._sessions.replace(
            matched.id, owner_id, secret_hash, refresh.expires_at
        )
        if successor is None:
            await self._revoke_all(owner_id, "session consumed concurrently")
            raise ReuseDetected()

        logger.debug("Rotated refresh session %s -> %s", matched.id, successor.id)
        return RotationResult(owner_id=owner_id, refresh=refresh, session=successor)
