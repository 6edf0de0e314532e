"""Pydantic schemas for notes.

Learn: Separate "Create"/"Update" schemas (input) from "Read" schemas
(output). Title rules (non-blank, ≤200 chars) are enforced in the
service so blank titles produce a validation_error envelope with a
readable message.
"""

import uuid
from datetime import datetime
from typing import Optional

from notekeep.schemas.envelope import CamelModel


class NoteCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None


class NoteUpdate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None


class NoteRead(CamelModel):
    id: uuid.UUID
    title: str
    content: Optional[str] = None
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total_notes: int
    total_pages: int


class NotePage(CamelModel):
    notes: list[NoteRead]
    pagination: Pagination
