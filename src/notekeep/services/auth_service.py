"""Auth service — registration and login.

Learn: Service layer separates business logic from HTTP routing.
Routes run the captcha check first, then call register()/login(),
which return a freshly issued token.

Registration writes the profile and the credential in one transaction.
If the credential insert fails (duplicate username racing past the
pre-check, or any database error) the rollback discards the profile
too, so no orphaned profile rows are left behind.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.auth.jwt import TokenIssuer
from notekeep.auth.password import (
    hash_password,
    validate_password,
    validate_username,
    verify_password,
)
from notekeep.db.models import Credential, Profile
from notekeep.errors import (
    AlreadyExistsError,
    InvalidCredentialsError,
    ValidationError,
)

logger = structlog.get_logger()


class AuthService:
    """Business logic for accounts and credentials."""

    def __init__(self, db: AsyncSession, issuer: TokenIssuer, bcrypt_rounds: int = 12):
        self.db = db
        self.issuer = issuer
        self.bcrypt_rounds = bcrypt_rounds

    async def _find(self, username: str) -> Credential | None:
        result = await self.db.execute(
            select(Credential).where(Credential.username == username)
        )
        return result.scalars().first()

    async def register(
        self,
        username: str,
        password: str,
        full_name: str | None = None,
        bio: str | None = None,
        avatar: str | None = None,
    ) -> str:
        """Create profile + credential and return a token for the new account."""
        username = validate_username(username)
        validate_password(password)

        if await self._find(username):
            raise AlreadyExistsError()

        profile = Profile(full_name=full_name or username, bio=bio, avatar=avatar)
        self.db.add(profile)
        try:
            await self.db.flush()
            credential = Credential(
                username=username,
                password_hash=hash_password(password, self.bcrypt_rounds),
                profile_id=profile.id,
            )
            self.db.add(credential)
            await self.db.flush()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("auth.register_conflict", username=username)
            raise AlreadyExistsError()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("auth.registered", user_id=str(credential.id))
        return self.issuer.issue(str(credential.id))

    async def login(self, username: str, password: str) -> str:
        """Verify credentials and return a token.

        Unknown user and wrong password raise the same error.
        """
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")

        credential = await self._find(username)
        if not credential or not verify_password(password, credential.password_hash):
            logger.info("auth.login_failed")
            raise InvalidCredentialsError()

        logger.info("auth.login", user_id=str(credential.id))
        return self.issuer.issue(str(credential.id))

    async def get_credential(self, user_id) -> Credential | None:
        return await self.db.get(Credential, user_id)
