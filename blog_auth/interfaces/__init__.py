from blog_auth.interfaces.session_store import RefreshSession, SessionStore
from blog_auth.interfaces.user_store import UserStore

__all__ = ["RefreshSession", "SessionStore", "UserStore"]
