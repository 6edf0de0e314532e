"""Auth API — captcha, registration, login.

Learn: Routes for the captcha-gated account flow:
- GET  /auth/captcha  → PNG challenge; handle saved in the session cookie
- POST /auth/register → captcha check → create account → token
- POST /auth/login    → captcha check → verify password → token
- GET  /auth/me       → current identity (token required)

The captcha check runs first in both POST handlers, before any input
validation or database access, and short-circuits on failure.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_token_issuer,
)
from notekeep.auth.jwt import TokenIssuer
from notekeep.cache.redis import get_redis
from notekeep.captcha import (
    CaptchaManager,
    ChallengeStore,
    RedisChallengeStore,
)
from notekeep.config import Settings, get_settings
from notekeep.db.engine import get_db
from notekeep.errors import ChallengeStoreError, NotFoundError
from notekeep.schemas.auth import LoginRequest, MeRead, RegisterRequest, TokenData
from notekeep.schemas.envelope import Envelope, ok
from notekeep.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def get_challenge_store(
    request: Request, cfg: Settings = Depends(get_settings)
) -> ChallengeStore:
    """The app's challenge store: in-process for "memory", else Redis."""
    if cfg.captcha_store == "memory":
        # Created by create_app; process-local, so single worker only
        return request.app.state.challenge_store
    try:
        return RedisChallengeStore(get_redis())
    except RuntimeError as e:
        raise ChallengeStoreError(details={"reason": str(e)})


def get_captcha_manager(
    store: ChallengeStore = Depends(get_challenge_store),
    cfg: Settings = Depends(get_settings),
) -> CaptchaManager:
    return CaptchaManager(store, cfg)


def _svc(
    db: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
    cfg: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db, issuer, bcrypt_rounds=cfg.bcrypt_rounds)


# ─── Captcha ────────────────────────────────────────────


@router.get("/captcha", response_class=Response)
async def captcha(
    request: Request,
    manager: CaptchaManager = Depends(get_captcha_manager),
):
    """Issue a math captcha bound to the caller's session."""
    png = await manager.issue(request.session)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Cache-Control": "no-store"},
    )


# ─── Register ───────────────────────────────────────────


@router.post("/register", response_model=Envelope[TokenData])
async def register(
    body: RegisterRequest,
    request: Request,
    manager: CaptchaManager = Depends(get_captcha_manager),
    svc: AuthService = Depends(_svc),
):
    """Create a new account and return a token."""
    await manager.validate(request.session, body.captcha)
    token = await svc.register(
        username=body.username,
        password=body.password,
        full_name=body.full_name,
        bio=body.bio,
        avatar=body.avatar,
    )
    return ok({"token": token}, "Registration successful")


# ─── Login ──────────────────────────────────────────────


@router.post("/login", response_model=Envelope[TokenData])
async def login(
    body: LoginRequest,
    request: Request,
    manager: CaptchaManager = Depends(get_captcha_manager),
    svc: AuthService = Depends(_svc),
):
    """Login with username and password → token."""
    await manager.validate(request.session, body.captcha)
    token = await svc.login(body.username, body.password)
    return ok({"token": token}, "Login successful")


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=Envelope[MeRead])
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    """Get the current authenticated user's info."""
    credential = await svc.get_credential(identity.user_id)
    if not credential:
        raise NotFoundError("User not found")
    return ok(MeRead(id=credential.id, username=credential.username))
