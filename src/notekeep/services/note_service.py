"""Note service — ownership-scoped CRUD with pagination.

Learn: Every query includes `Note.owner_id == owner_id`. A note that
exists but belongs to someone else is indistinguishable from one that
does not exist: both raise NotFoundError with the same message, so
responses never reveal other users' note ids.
"""

import math
import uuid
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.db.models import Note, utcnow
from notekeep.errors import NotFoundError, ValidationError

MAX_TITLE_LENGTH = 200


def parse_positive_int(raw: Any, default: int) -> int:
    """Lenient query-param parsing: non-numeric or < 1 falls back to default."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _clean_title(title: Optional[str]) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title is required", details={"field": "title"})
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValidationError(
            f"Title must be at most {MAX_TITLE_LENGTH} characters",
            details={"field": "title"},
        )
    return cleaned


def _parse_note_id(note_id: str | uuid.UUID) -> Optional[uuid.UUID]:
    if isinstance(note_id, uuid.UUID):
        return note_id
    try:
        return uuid.UUID(str(note_id))
    except ValueError:
        return None


class NoteService:
    """Business logic for a user's notes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self, owner_id: uuid.UUID, title: Optional[str], content: Optional[str] = None
    ) -> Note:
        note = Note(title=_clean_title(title), content=content, owner_id=owner_id)
        self.db.add(note)
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def list(
        self, owner_id: uuid.UUID, page: int = 1, limit: int = 10
    ) -> dict:
        """One page of the owner's notes, newest first, plus pagination info."""
        total = await self.db.scalar(
            select(func.count()).select_from(Note).where(Note.owner_id == owner_id)
        )
        total = total or 0

        result = await self.db.execute(
            select(Note)
            .where(Note.owner_id == owner_id)
            .order_by(Note.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "notes": list(result.scalars().all()),
            "pagination": {
                "page": page,
                "limit": limit,
                "total_notes": total,
                "total_pages": math.ceil(total / limit),
            },
        }

    async def get(self, owner_id: uuid.UUID, note_id: str | uuid.UUID) -> Note:
        parsed = _parse_note_id(note_id)
        note = None
        if parsed is not None:
            result = await self.db.execute(
                select(Note).where(Note.id == parsed, Note.owner_id == owner_id)
            )
            note = result.scalars().first()
        if note is None:
            raise NotFoundError("Note not found")
        return note

    async def update(
        self, owner_id: uuid.UUID, note_id: str | uuid.UUID, changes: dict
    ) -> Note:
        """Apply a partial update. `changes` holds only the fields the client sent."""
        note = await self.get(owner_id, note_id)
        if "title" in changes:
            note.title = _clean_title(changes["title"])
        if "content" in changes:
            note.content = changes["content"]
        note.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def delete(self, owner_id: uuid.UUID, note_id: str | uuid.UUID) -> None:
        note = await self.get(owner_id, note_id)
        await self.db.delete(note)
        await self.db.commit()
