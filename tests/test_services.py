"""Service-layer tests — run against the DB session directly, no HTTP."""

import uuid

import pytest
from sqlalchemy import func, select

from notekeep.auth.jwt import TokenIssuer
from notekeep.config import Settings
from notekeep.db.models import Credential, Profile
from notekeep.errors import AlreadyExistsError, NotFoundError
from notekeep.services.auth_service import AuthService
from notekeep.services.note_service import NoteService, parse_positive_int


@pytest.fixture()
def issuer():
    return TokenIssuer(Settings(environment="test", jwt_secret="svc-secret"))


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_register_returns_token_for_new_credential(db_session, issuer):
    svc = AuthService(db_session, issuer, bcrypt_rounds=4)
    token = await svc.register("carol", "Passw0rd")

    subject = issuer.verify(token)
    credential = await db_session.get(Credential, uuid.UUID(subject))
    assert credential.username == "carol"


@pytest.mark.asyncio
async def test_username_race_rolls_back_profile(db_session, issuer):
    """If the unique constraint fires, the profile insert is rolled back too."""
    svc = AuthService(db_session, issuer, bcrypt_rounds=4)
    await svc.register("dave", "Passw0rd")

    async def nobody(username):
        return None

    # Simulate a concurrent registration slipping past the pre-check
    svc._find = nobody
    with pytest.raises(AlreadyExistsError):
        await svc.register("dave", "Passw0rd")

    assert await _count(db_session, Profile) == 1
    assert await _count(db_session, Credential) == 1


@pytest.mark.asyncio
async def test_note_get_scopes_by_owner(db_session, issuer):
    auth = AuthService(db_session, issuer, bcrypt_rounds=4)
    owner = uuid.UUID(issuer.verify(await auth.register("erin", "Passw0rd")))
    other = uuid.UUID(issuer.verify(await auth.register("frank", "Passw0rd")))

    notes = NoteService(db_session)
    note = await notes.create(owner, "  Title  ", "body")
    assert note.title == "Title"

    with pytest.raises(NotFoundError):
        await notes.get(other, note.id)
    assert (await notes.get(owner, str(note.id))).id == note.id


@pytest.mark.parametrize(
    "raw,expected",
    [(None, 10), ("", 10), ("abc", 10), ("0", 10), ("-2", 10), ("3", 3), (" 7 ", 7), ("2.5", 10)],
)
def test_parse_positive_int(raw, expected):
    assert parse_positive_int(raw, 10) == expected
