"""Pydantic schemas for captcha-gated registration and login.

Learn: Fields default to empty strings rather than being required, so
a request with a missing username still reaches the captcha check and
then the service-level validation (with its specific messages)
instead of failing early with a generic schema error.

The captcha answer is numeric, so clients may send it as a JSON number;
it is normalised to text before the captcha check compares it.
"""

import uuid
from typing import Any, Optional

from pydantic import Field, field_validator

from notekeep.schemas.envelope import CamelModel


def _captcha_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class RegisterRequest(CamelModel):
    username: str = ""
    password: str = ""
    full_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    avatar: Optional[str] = Field(None, max_length=500)
    captcha: str = ""

    @field_validator("captcha", mode="before")
    @classmethod
    def captcha_as_text(cls, value: Any) -> Any:
        return _captcha_text(value)


class LoginRequest(CamelModel):
    username: str = ""
    password: str = ""
    captcha: str = ""

    @field_validator("captcha", mode="before")
    @classmethod
    def captcha_as_text(cls, value: Any) -> Any:
        return _captcha_text(value)


class TokenData(CamelModel):
    token: str


class MeRead(CamelModel):
    id: uuid.UUID
    username: str
