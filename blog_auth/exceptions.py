"""Auth exceptions."""


class AuthException(Exception):
    """Base auth exception with HTTP status."""

    status_code_default = 400
    message_default = "Authentication error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        message = message or self.message_default
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.status_code_default


class InvalidCredentials(AuthException):
    """Unknown email or wrong password. The two cases are never distinguished."""

    status_code_default = 401
    message_default = "Invalid credentials"


class EmailTaken(AuthException):
    status_code_default = 409
    message_default = "Email already exists"


class InvalidToken(AuthException):
    """Malformed, wrongly signed, expired or wrong-type token."""

    status_code_default = 401
    message_default = "Invalid refresh token"

    def __init__(self, message: str | None = None, status_code: int | None = None, reason: str | None = None):
        super().__init__(message, status_code)
        # Internal only; never rendered to clients.
        self.reason = reason


class NoValidSession(InvalidToken):
    """Well-formed refresh token, but the subject has no unexpired session."""


class ReuseDetected(InvalidToken):
    """Replay of a consumed or revoked refresh token. All sessions were wiped."""


class NotFound(AuthException):
    status_code_default = 404
    message_default = "User not found"
