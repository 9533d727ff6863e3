"""Auth result schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PublicUser(BaseModel):
    """Minimal profile placed in the request's authenticated-identity context."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str | None = None

    @classmethod
    def from_record(cls, user: dict) -> "PublicUser":
        return cls(id=user["id"], email=user["email"], name=user.get("name"))


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    access_expires_at: int
    refresh_expires_at: int
    user: PublicUser
