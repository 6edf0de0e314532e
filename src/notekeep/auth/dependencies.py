"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current identity from the request. Protected routers
declare get_current_user once at include time (see api/__init__.py);
handlers that need the identity itself declare it again and FastAPI
reuses the cached result.
"""

import uuid
from typing import Optional

from fastapi import Depends, Header, Request

from notekeep.auth.jwt import TokenIssuer
from notekeep.config import Settings, get_settings
from notekeep.errors import TokenInvalidError, TokenMissingError


class CurrentIdentity:
    """The authenticated caller. All note and profile queries scope by user_id."""

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id})"


def get_token_issuer(cfg: Settings = Depends(get_settings)) -> TokenIssuer:
    return TokenIssuer(cfg)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> CurrentIdentity:
    """Resolve the bearer token into an identity (401 when absent or invalid)."""
    token = _bearer_token(authorization)
    if token is None:
        raise TokenMissingError()

    subject_id = issuer.verify(token)
    try:
        identity = CurrentIdentity(user_id=uuid.UUID(subject_id))
    except ValueError:
        raise TokenInvalidError()

    request.state.identity = identity
    return identity
