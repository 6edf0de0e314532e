"""Password hashing and strength rules.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor (rounds=12) takes ~100ms per hash on modern hardware.

checkpw does the comparison inside bcrypt, so verification time does
not depend on how many leading characters match.
"""

import re

import bcrypt

from notekeep.errors import ValidationError

# At least one lowercase letter, one uppercase letter and one digit
_COMPLEXITY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).+$")

MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 50  # credentials.username is VARCHAR(50)
MIN_PASSWORD_LENGTH = 8


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash. Malformed hashes never match."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


def validate_username(username: str | None) -> str:
    """Return the trimmed username or raise ValidationError."""
    trimmed = (username or "").strip()
    if len(trimmed) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters",
            details={"field": "username"},
        )
    if len(trimmed) > MAX_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be at most {MAX_USERNAME_LENGTH} characters",
            details={"field": "username"},
        )
    if any(ch.isspace() for ch in trimmed):
        raise ValidationError(
            "Username must not contain spaces", details={"field": "username"}
        )
    return trimmed


def validate_password(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"field": "password"},
        )
    if not _COMPLEXITY.match(password):
        raise ValidationError(
            "Password must contain uppercase, lowercase letters and a digit",
            details={"field": "password"},
        )
