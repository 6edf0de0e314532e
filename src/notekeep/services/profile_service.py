"""Profile service — read and update the caller's own profile."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.db.models import Credential, Profile
from notekeep.errors import NotFoundError

UPDATABLE_FIELDS = ("full_name", "bio", "avatar")


class ProfileService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: uuid.UUID) -> Profile:
        result = await self.db.execute(
            select(Profile)
            .join(Credential, Credential.profile_id == Profile.id)
            .where(Credential.id == user_id)
        )
        profile = result.scalars().first()
        if profile is None:
            raise NotFoundError("User not found")
        return profile

    async def update(self, user_id: uuid.UUID, changes: dict) -> Profile:
        """Overwrite exactly the supplied fields; others keep their values."""
        profile = await self.get(user_id)
        for field in UPDATABLE_FIELDS:
            if field in changes:
                setattr(profile, field, changes[field])
        await self.db.commit()
        await self.db.refresh(profile)
        return profile
