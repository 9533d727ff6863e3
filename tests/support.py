"""Shared builders for the auth test-suite."""

from blog_auth.config import AuthSettings
from blog_auth.security import CredentialHasher, TokenIssuer
from blog_auth.services.auth_service import AuthService
from blog_auth.stores.memory_store import MemorySessionStore, MemoryUserStore

ACCESS_SECRET = "access-signing-key-0123456789abcdef0123"
REFRESH_SECRET = "refresh-signing-key-0123456789abcdef012"

# bcrypt's minimum cost keeps the suite fast
FAST_ROUNDS = 4


def make_settings(**overrides) -> AuthSettings:
    values = {
        "JWT_SECRET": ACCESS_SECRET,
        "JWT_REFRESH_SECRET": REFRESH_SECRET,
        "BCRYPT_SALT_ROUNDS": FAST_ROUNDS,
        "AUTH_STORE": "memory",
        "DATABASE_URL": "sqlite://",
    }
    values.update(overrides)
    return AuthSettings(_env_file=None, **values)


def make_service(settings: AuthSettings | None = None, **kwargs):
    """Return (service, user_store, session_store) backed by memory stores."""
    settings = settings or make_settings()
    users = MemoryUserStore()
    sessions = MemorySessionStore()
    service = AuthService(
        user_store=users,
        session_store=sessions,
        hasher=CredentialHasher(rounds=settings.BCRYPT_SALT_ROUNDS),
        token_issuer=TokenIssuer(settings),
        **kwargs,
    )
    return service, users, sessions
