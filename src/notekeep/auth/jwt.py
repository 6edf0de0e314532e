"""Identity token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The
token embeds {"user": {"id": <credential id>}} plus iat/exp claims and
is signed with HS256 using the server secret. Nothing is stored
server-side: a token stops working only when it expires (7 days by
default) or the secret is rotated.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from notekeep.config import Settings
from notekeep.errors import TokenInvalidError


class TokenIssuer:
    """Signs and verifies identity tokens with a fixed secret and lifetime."""

    def __init__(self, settings: Settings):
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.lifetime = timedelta(days=settings.token_expire_days)

    def issue(self, subject_id: str, now: Optional[datetime] = None) -> str:
        """Create a signed token for subject_id."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "user": {"id": subject_id},
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Verify a token and return its subject id.

        Raises TokenInvalidError on a bad signature, expiry or a payload
        without a user id.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenInvalidError("Token has expired")
        except jwt.InvalidTokenError:
            raise TokenInvalidError()

        user = payload.get("user")
        subject_id = user.get("id") if isinstance(user, dict) else None
        if not subject_id or not isinstance(subject_id, str):
            raise TokenInvalidError()
        return subject_id
