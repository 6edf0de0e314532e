"""Captcha issue/validate flow bound to the request session.

Learn: `session` is Starlette's request.session (a dict persisted in a
signed cookie by SessionMiddleware). Only the handle goes in there;
the answer goes into the ChallengeStore under that handle.

Validation order matters; each failure is a distinct error code:
    no handle in session   → SessionMissingError
    no pending answer      → ChallengeExpiredError
    blank submission       → AnswerMissingError
    wrong answer           → AnswerMismatchError
A wrong answer leaves the challenge in place; a right one is consumed.
"""

import random
import secrets
from typing import Any, MutableMapping, Optional

import structlog

from notekeep.captcha.challenge import generate_challenge
from notekeep.captcha.render import render_png
from notekeep.captcha.store import ChallengeStore
from notekeep.config import Settings
from notekeep.errors import (
    AnswerMismatchError,
    AnswerMissingError,
    ChallengeExpiredError,
    SessionMissingError,
)

logger = structlog.get_logger()

SESSION_KEY = "captcha_handle"


class CaptchaManager:
    def __init__(
        self,
        store: ChallengeStore,
        settings: Settings,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.settings = settings
        self.rng = rng or random.SystemRandom()

    async def issue(self, session: MutableMapping[str, Any]) -> bytes:
        """Create a challenge for this session and return it as PNG bytes.

        Raises ChallengeStoreError if the answer cannot be saved.
        """
        s = self.settings
        challenge = generate_challenge(
            s.captcha_math_min, s.captcha_math_max, s.captcha_operators, self.rng
        )

        handle = session.get(SESSION_KEY)
        if not handle:
            handle = secrets.token_urlsafe(24)
        await self.store.put(handle, challenge.answer, s.captcha_ttl_seconds)
        session[SESSION_KEY] = handle

        logger.info("captcha.issued", ttl=s.captcha_ttl_seconds)
        return render_png(
            challenge.expression,
            width=s.captcha_width,
            height=s.captcha_height,
            noise=s.captcha_noise,
            rng=self.rng,
        )

    async def validate(
        self, session: Optional[MutableMapping[str, Any]], submitted: Optional[str]
    ) -> None:
        """Check the submitted answer; consume the challenge on success."""
        if session is None:
            raise SessionMissingError()
        handle = session.get(SESSION_KEY)
        if not handle:
            raise SessionMissingError()

        expected = await self.store.get(handle)
        if expected is None:
            raise ChallengeExpiredError()

        answer = (submitted or "").strip()
        if not answer:
            raise AnswerMissingError()

        if answer.lower() != expected.lower():
            logger.info("captcha.mismatch")
            raise AnswerMismatchError()

        if not await self.store.consume(handle):
            # Another request consumed it between get() and consume()
            raise ChallengeExpiredError()
        logger.info("captcha.solved")
