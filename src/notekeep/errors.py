"""Application exception hierarchy.

Learn: Services and dependencies raise these; the handlers registered
in main.py turn them into the uniform response envelope. Each class
carries its HTTP status and a stable machine-readable code, so route
handlers never build error responses by hand.

    NotekeepError (base)
    ├── ValidationError          → 400 validation_error
    │   └── CaptchaError
    │       ├── SessionMissingError   → session_missing
    │       ├── ChallengeExpiredError → challenge_expired
    │       ├── AnswerMissingError    → answer_missing
    │       └── AnswerMismatchError   → answer_mismatch
    ├── AlreadyExistsError       → 400 already_exists
    ├── InvalidCredentialsError  → 400 invalid_credentials
    ├── AuthError                → 401 auth_error
    │   ├── TokenMissingError    → token_missing
    │   └── TokenInvalidError    → token_invalid
    ├── NotFoundError            → 404 not_found
    └── ServerError              → 500 server_error
        └── ChallengeStoreError  → challenge_store_unavailable
"""

from typing import Any, Optional


class NotekeepError(Exception):
    """Base for all errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "server_error"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Any = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        self.headers = headers
        super().__init__(self.message)


class ValidationError(NotekeepError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class AlreadyExistsError(NotekeepError):
    status_code = 400
    code = "already_exists"
    default_message = "User already exists"


class InvalidCredentialsError(NotekeepError):
    """Login failure. Never says whether the username or the password was wrong."""

    status_code = 400
    code = "invalid_credentials"
    default_message = "Invalid username or password"


# ─── Captcha ────────────────────────────────────────────


class CaptchaError(ValidationError):
    default_message = "Captcha validation failed"


class SessionMissingError(CaptchaError):
    code = "session_missing"
    default_message = "Session not initialized"


class ChallengeExpiredError(CaptchaError):
    code = "challenge_expired"
    default_message = "Captcha has expired"


class AnswerMissingError(CaptchaError):
    code = "answer_missing"
    default_message = "Please enter the captcha"


class AnswerMismatchError(CaptchaError):
    code = "answer_mismatch"
    default_message = "Incorrect captcha"


# ─── Auth ───────────────────────────────────────────────


class AuthError(NotekeepError):
    status_code = 401
    code = "auth_error"
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message, details, headers={"WWW-Authenticate": "Bearer"})


class TokenMissingError(AuthError):
    code = "token_missing"
    default_message = "No token provided, access denied"


class TokenInvalidError(AuthError):
    code = "token_invalid"
    default_message = "Token is invalid"


# ─── Lookup / server ────────────────────────────────────


class NotFoundError(NotekeepError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class ServerError(NotekeepError):
    pass


class ChallengeStoreError(ServerError):
    code = "challenge_store_unavailable"
    default_message = "Failed to save session"
