"""Uniform response envelope.

Learn: Every endpoint answers {success, data?, message?, error?}.
Success responses are built with ok(); the exception handlers in
main.py build failures with fail(). Payload models inherit
CamelModel so JSON keys come out camelCase (totalNotes, fullName)
while Python code keeps snake_case attribute names.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorInfo(BaseModel):
    code: Optional[str] = None
    details: Any = None


class Envelope(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[ErrorInfo] = None


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    return {"success": True, "data": data, "message": message}


def fail(message: str, code: Optional[str] = None, details: Any = None) -> dict:
    return {
        "success": False,
        "message": message,
        "error": {"code": code, "details": details},
    }
