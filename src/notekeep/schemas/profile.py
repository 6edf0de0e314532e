import uuid
from typing import Optional

from pydantic import Field

from notekeep.schemas.envelope import CamelModel


class ProfileRead(CamelModel):
    id: uuid.UUID
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None


class ProfileData(CamelModel):
    profile: ProfileRead


class ProfileUpdate(CamelModel):
    """Only fields present in the request body are written; null clears one."""

    full_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    avatar: Optional[str] = Field(None, max_length=500)
