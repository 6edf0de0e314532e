"""User profile routes (token required)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.auth.dependencies import CurrentIdentity, get_current_user
from notekeep.db.engine import get_db
from notekeep.schemas.envelope import Envelope, ok
from notekeep.schemas.profile import ProfileData, ProfileRead, ProfileUpdate
from notekeep.services.profile_service import ProfileService

router = APIRouter(prefix="/user")


def _svc(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


@router.get("/profile", response_model=Envelope[ProfileData])
async def get_profile(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProfileService = Depends(_svc),
):
    profile = await svc.get(identity.user_id)
    return ok(ProfileData(profile=ProfileRead.model_validate(profile)))


@router.put("/profile", response_model=Envelope[ProfileData])
async def update_profile(
    body: ProfileUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProfileService = Depends(_svc),
):
    profile = await svc.update(identity.user_id, body.model_dump(exclude_unset=True))
    return ok(ProfileData(profile=ProfileRead.model_validate(profile)))
