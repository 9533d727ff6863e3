"""Session store interface for refresh tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class RefreshSession:
    """One outstanding, rotatable refresh credential.

    Only the hash of the refresh token is kept; rows are never updated in
    place.
    """

    id: str
    owner_id: str
    secret_hash: str
    expires_at: datetime
    created_at: datetime


class SessionStore(Protocol):
    async def create(self, owner_id: str, secret_hash: str, expires_at: datetime) -> RefreshSession:
        ...

    async def list_valid(self, owner_id: str, now: datetime) -> list[RefreshSession]:
        """Rows for ``owner_id`` with ``expires_at >= now``, in no particular order."""
        ...

    async def delete_by_id(self, session_id: str) -> bool:
        ...

    async def delete_all_for_owner(self, owner_id: str) -> int:
        ...

    async def replace(
        self,
        session_id: str,
        owner_id: str,
        secret_hash: str,
        expires_at: datetime,
    ) -> RefreshSession | None:
        """Atomically delete ``session_id`` and insert its successor.

        Returns None, inserting nothing, if the row was already gone.
        """
        ...

    async def delete_expired(self, now: datetime) -> int:
        ...

    async def count_for_owner(self, owner_id: str) -> int:
        """Rows for ``owner_id`` regardless of expiry."""
        ...
