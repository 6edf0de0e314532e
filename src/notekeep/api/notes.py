"""Note API routes.

Learn: Each handler receives the caller's identity via Depends() and
passes its user_id into the service, which scopes every query by owner.
Path ids are taken as plain strings: a malformed id is just another
note that "does not exist" (404), not a request validation error.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.auth.dependencies import CurrentIdentity, get_current_user
from notekeep.config import Settings, get_settings
from notekeep.db.engine import get_db
from notekeep.schemas.envelope import Envelope, ok
from notekeep.schemas.note import NoteCreate, NotePage, NoteRead, NoteUpdate
from notekeep.services.note_service import NoteService, parse_positive_int

router = APIRouter(prefix="/notes")


def _svc(db: AsyncSession = Depends(get_db)) -> NoteService:
    return NoteService(db)


@router.post("", response_model=Envelope[NoteRead])
async def create_note(
    body: NoteCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    note = await svc.create(identity.user_id, body.title, body.content)
    return ok(NoteRead.model_validate(note))


@router.get("", response_model=Envelope[NotePage])
async def list_notes(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
    cfg: Settings = Depends(get_settings),
):
    """List the caller's notes, newest first."""
    page_no = parse_positive_int(page, 1)
    page_size = min(
        parse_positive_int(limit, cfg.notes_default_limit),
        cfg.notes_max_limit,
    )
    result = await svc.list(identity.user_id, page=page_no, limit=page_size)
    return ok(
        NotePage(
            notes=[NoteRead.model_validate(n) for n in result["notes"]],
            pagination=result["pagination"],
        )
    )


@router.get("/{note_id}", response_model=Envelope[NoteRead])
async def get_note(
    note_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    note = await svc.get(identity.user_id, note_id)
    return ok(NoteRead.model_validate(note))


@router.put("/{note_id}", response_model=Envelope[NoteRead])
async def update_note(
    note_id: str,
    body: NoteUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    """Partial update: only fields present in the body are changed."""
    note = await svc.update(
        identity.user_id, note_id, body.model_dump(exclude_unset=True)
    )
    return ok(NoteRead.model_validate(note))


@router.delete("/{note_id}", response_model=Envelope)
async def delete_note(
    note_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NoteService = Depends(_svc),
):
    await svc.delete(identity.user_id, note_id)
    return ok(None, "Note deleted")
