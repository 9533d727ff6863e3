"""In-memory auth stores."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from blog_auth.exceptions import EmailTaken
from blog_auth.interfaces.session_store import RefreshSession


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryUserStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users_by_email: dict[str, dict[str, Any]] = {}
        self._users_by_id: dict[str, dict[str, Any]] = {}

    async def get_by_email(self, email: str) -> dict | None:
        async with self._lock:
            user = self._users_by_email.get(email.lower())
            return dict(user) if user else None

    async def get_by_id(self, user_id: str) -> dict | None:
        async with self._lock:
            user = self._users_by_id.get(user_id)
            return dict(user) if user else None

    async def create_user(self, data: dict) -> dict:
        async with self._lock:
            payload = dict(data)
            payload["email"] = payload["email"].lower()
            if payload["email"] in self._users_by_email:
                raise EmailTaken()
            payload["id"] = str(uuid4())
            payload["created_at"] = payload.get("created_at", _now())
            self._users_by_email[payload["email"]] = payload
            self._users_by_id[payload["id"]] = payload
            return dict(payload)

    async def delete_user(self, user_id: str) -> None:
        async with self._lock:
            user = self._users_by_id.pop(user_id, None)
            if user:
                self._users_by_email.pop(user["email"], None)


class MemorySessionStore:
    """Refresh sessions held in a dict; the lock makes ``replace`` atomic."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, RefreshSession] = {}

    def _insert(self, owner_id: str, secret_hash: str, expires_at: datetime) -> RefreshSession:
        session = RefreshSession(
            id=str(uuid4()),
            owner_id=owner_id,
            secret_hash=secret_hash,
            expires_at=expires_at,
            created_at=_now(),
        )
        self._sessions[session.id] = session
        return session

    async def create(self, owner_id: str, secret_hash: str, expires_at: datetime) -> RefreshSession:
        async with self._lock:
            return self._insert(owner_id, secret_hash, expires_at)

    async def list_valid(self, owner_id: str, now: datetime) -> list[RefreshSession]:
        async with self._lock:
            return [
                session
                for session in self._sessions.values()
                if session.owner_id == owner_id and session.expires_at >= now
            ]

    async def delete_by_id(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def delete_all_for_owner(self, owner_id: str) -> int:
        async with self._lock:
            doomed = [sid for sid, s in self._sessions.items() if s.owner_id == owner_id]
            for sid in doomed:
                del self._sessions[sid]
            return len(doomed)

    async def replace(
        self,
        session_id: str,
        owner_id: str,
        secret_hash: str,
        expires_at: datetime,
    ) -> RefreshSession | None:
        async with self._lock:
            if self._sessions.pop(session_id, None) is None:
                return None
            return self._insert(owner_id, secret_hash, expires_at)

    async def delete_expired(self, now: datetime) -> int:
        async with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.expires_at < now]
            for sid in expired:
                del self._sessions[sid]
            return len(expired)

    async def count_for_owner(self, owner_id: str) -> int:
        """Rows for ``owner_id`` regardless of expiry."""
        async with self._lock:
            return sum(1 for s in self._sessions.values() if s.owner_id == owner_id)
