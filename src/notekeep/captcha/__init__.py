"""Math captcha gate for registration and login.

Learn: GET /api/auth/captcha draws "a+b=?" into a PNG and stores the
expected answer server-side, keyed by an opaque handle kept in the
signed session cookie. Register/login call CaptchaManager.validate()
before any account logic; a correct answer is consumed immediately so
each challenge gates exactly one attempt that passes it.
"""

from notekeep.captcha.challenge import Challenge, generate_challenge
from notekeep.captcha.manager import CaptchaManager
from notekeep.captcha.store import (
    ChallengeStore,
    MemoryChallengeStore,
    RedisChallengeStore,
)

__all__ = [
    "CaptchaManager",
    "Challenge",
    "ChallengeStore",
    "MemoryChallengeStore",
    "RedisChallengeStore",
    "generate_challenge",
]
