"""SQL auth stores using SQLAlchemy."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from blog_auth.exceptions import EmailTaken
from blog_auth.interfaces.session_store import RefreshSession
from db.models.auth import RefreshSessionRecord
from db.models.user import User


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def _to_ts(value: datetime) -> int:
    """Exact microseconds since the epoch; ``value`` must be timezone-aware."""
    return (value - _EPOCH) // _MICROSECOND


def _from_ts(value: int) -> datetime:
    return _EPOCH + value * _MICROSECOND


def _user_to_dict(user: User) -> dict:
    created_at = user.created_at
    if created_at is not None and created_at.tzinfo is None:
        # SQLite drops the offset; values are always written in UTC
        created_at = created_at.replace(tzinfo=timezone.utc)
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "hashed_password": user.hashed_password,
        "created_at": created_at,
    }


class SQLUserStore:
    """User store backed by a relational database."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _get_session(self) -> Session:
        return self._session_factory()

    async def get_by_email(self, email: str) -> dict | None:
        with self._get_session() as db:
            user = db.execute(
                select(User).where(User.email == email.lower())
            ).scalar_one_or_none()
            return _user_to_dict(user) if user else None

    async def get_by_id(self, user_id: str) -> dict | None:
        with self._get_session() as db:
            user = db.get(User, user_id)
            return _user_to_dict(user) if user else None

    async def create_user(self, data: dict) -> dict:
        with self._get_session() as db:
            user = User(
                id=str(uuid.uuid4()),
                email=data["email"].lower(),
                name=data.get("name"),
                hashed_password=data["hashed_password"],
                created_at=data.get("created_at", datetime.now(timezone.utc)),
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise EmailTaken() from exc
            db.refresh(user)
            return _user_to_dict(user)

    async def delete_user(self, user_id: str) -> None:
        with self._get_session() as db:
            db.execute(delete(RefreshSessionRecord).where(RefreshSessionRecord.user_id == user_id))
            db.execute(delete(User).where(User.id == user_id))
            db.commit()


class SQLSessionStore:
    """Refresh-session store backed by a relational database.

    ``replace`` runs its DELETE and INSERT in one transaction and only inserts
    when the DELETE hit a row, so two concurrent rotations of the same row
    cannot both succeed.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _get_session(self) -> Session:
        return self._session_factory()

    @staticmethod
    def _new_record(owner_id: str, secret_hash: str, expires_at: datetime) -> RefreshSessionRecord:
        return RefreshSessionRecord(
            id=str(uuid.uuid4()),
            user_id=owner_id,
            secret_hash=secret_hash,
            expires_at=_to_ts(expires_at),
            created_at=_to_ts(datetime.now(timezone.utc)),
        )

    @staticmethod
    def _to_session(record: RefreshSessionRecord) -> RefreshSession:
        return RefreshSession(
            id=record.id,
            owner_id=record.user_id,
            secret_hash=record.secret_hash,
            expires_at=_from_ts(record.expires_at),
            created_at=_from_ts(record.created_at),
        )

    async def create(self, owner_id: str, secret_hash: str, expires_at: datetime) -> RefreshSession:
        record = self._new_record(owner_id, secret_hash, expires_at)
        session = self._to_session(record)
        with self._get_session() as db:
            db.add(record)
            db.commit()
        return session

    async def list_valid(self, owner_id: str, now: datetime) -> list[RefreshSession]:
        with self._get_session() as db:
            records = db.execute(
                select(RefreshSessionRecord).where(
                    RefreshSessionRecord.user_id == owner_id,
                    RefreshSessionRecord.expires_at >= _to_ts(now),
                )
            ).scalars().all()
            return [self._to_session(record) for record in records]

    async def delete_by_id(self, session_id: str) -> bool:
        with self._get_session() as db:
            result = db.execute(
                delete(RefreshSessionRecord).where(RefreshSessionRecord.id == session_id)
            )
            db.commit()
            return result.rowcount > 0

    async def delete_all_for_owner(self, owner_id: str) -> int:
        with self._get_session() as db:
            result = db.execute(
                delete(RefreshSessionRecord).where(RefreshSessionRecord.user_id == owner_id)
            )
            db.commit()
            return result.rowcount

    async def replace(
        self,
        session_id: str,
        owner_id: str,
        secret_hash: str,
        expires_at: datetime,
    ) -> RefreshSession | None:
        record = self._new_record(owner_id, secret_hash, expires_at)
        session = self._to_session(record)
        with self._get_session() as db, db.begin():
            result = db.execute(
                delete(RefreshSessionRecord).where(RefreshSessionRecord.id == session_id)
            )
            if result.rowcount == 0:
                return None
            db.add(record)
        return session

    async def delete_expired(self, now: datetime) -> int:
        with self._get_session() as db:
            result = db.execute(
                delete(RefreshSessionRecord).where(RefreshSessionRecord.expires_at < _to_ts(now))
            )
            db.commit()
            return result.rowcount

    async def count_for_owner(self, owner_id: str) -> int:
        with self._get_session() as db:
            return db.execute(
                select(func.count())
                .select_from(RefreshSessionRecord)
                .where(RefreshSessionRecord.user_id == owner_id)
            ).scalar_one()
