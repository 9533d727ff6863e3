"""Security primitives: credential hashing and JWT issuance."""

from __future__ import annotations

import base64
import hashlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from blog_auth.config import AuthSettings
from blog_auth.exceptions import InvalidToken

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

_DUMMY_SECRET = "blog-auth-timing-equaliser"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialHasher:
    """Salted one-way hashing for passwords and refresh-token secrets.

    Inputs are digested with SHA-256 before bcrypt so that secrets longer than
    bcrypt's 72-byte window (every JWT) are bound in full.
    """

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds
        self._dummy_hash: str | None = None

    @staticmethod
    def _prepare(plaintext: str) -> bytes:
        digest = hashlib.sha256(plaintext.encode("utf-8")).digest()
        return base64.b64encode(digest)

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = bcrypt.hashpw(self._prepare(plaintext), salt)
        return hashed.decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Constant-time check; a malformed digest is a mismatch, never an error."""
        try:
            return bcrypt.checkpw(self._prepare(plaintext), digest.encode("utf-8"))
        except Exception:
            return False

    @property
    def dummy_hash(self) -> str:
        """Digest to verify against when there is no real one (login timing)."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(_DUMMY_SECRET)
        return self._dummy_hash


@dataclass(frozen=True)
class IssuedToken:
    token: str
    jti: str
    expires_at: datetime


class TokenIssuer:
    """Mints and verifies signed access/refresh JWTs.

    Access and refresh tokens are signed with separate keys, so a leaked key
    for one class cannot forge the other.
    """

    def __init__(self, settings: AuthSettings, clock: Callable[[], datetime] = utcnow) -> None:
        self._algorithm = settings.JWT_ALGORITHM
        self._keys = {
            ACCESS: settings.JWT_SECRET,
            REFRESH: settings.JWT_REFRESH_SECRET,
        }
        self._ttls = {
            ACCESS: settings.JWT_EXPIRES_IN,
            REFRESH: settings.JWT_REFRESH_EXPIRES_IN,
        }
        self._clock = clock

    def _issue(self, token_type: str, claims: dict[str, Any]) -> IssuedToken:
        now = self._clock()
        expire = now + self._ttls[token_type]
        jti = uuid4().hex
        payload: dict[str, Any] = {
            **claims,
            "type": token_type,
            "iat": now,
            "exp": expire,
            "jti": jti,
        }
        token = jwt.encode(payload, self._keys[token_type], algorithm=self._algorithm)
        return IssuedToken(token=token, jti=jti, expires_at=expire)

    def issue_access_token(self, subject_id: str, email: str) -> IssuedToken:
        return self._issue(ACCESS, {"sub": str(subject_id), "email": email})

    def issue_refresh_token(self, subject_id: str) -> IssuedToken:
        return self._issue(REFRESH, {"sub": str(subject_id)})

    def verify(self, token: str, expected_type: str) -> dict[str, Any]:
        """Return the payload of a valid token of ``expected_type``.

        Bad signature, wrong key, expiry, wrong type and missing subject all
        raise the same InvalidToken; only ``reason`` tells them apart.
        """
        if expected_type not in self._keys:
            raise ValueError(f"Unknown token type: {expected_type}")
        message = "Invalid refresh token" if expected_type == REFRESH else "Invalid token"

        try:
            payload = jwt.decode(token, self._keys[expected_type], algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            logger.debug("%s token rejected: expired", expected_type)
            raise InvalidToken(message, reason="expired") from exc
        except (JWTError, AttributeError, TypeError) as exc:
            logger.debug("%s token rejected: signature", expected_type)
            raise InvalidToken(message, reason="signature") from exc

        if payload.get("type") != expected_type:
            logger.debug("%s token rejected: type", expected_type)
            raise InvalidToken(message, reason="type")
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            logger.debug("%s token rejected: claims", expected_type)
            raise InvalidToken(message, reason="claims")
        return payload
