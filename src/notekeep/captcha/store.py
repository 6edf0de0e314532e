"""Server-side storage for pending captcha answers.

Learn: The session cookie only carries an opaque handle; the answer
itself never leaves the server. Two backends share one interface:

- RedisChallengeStore: SET with EX for the TTL, so Redis expires stale
  challenges on its own. DEL reports how many keys it removed, which
  makes consumption atomic across workers.
- MemoryChallengeStore: process-local dict with expiry timestamps, for
  single-process development and tests.

`consume()` returns True only for the caller that actually removed the
entry, so two concurrent submissions of the same correct answer cannot
both pass.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from notekeep.errors import ChallengeStoreError

KEY_PREFIX = "notekeep:captcha:"


class ChallengeStore(ABC):
    """Maps a session handle to the expected captcha answer."""

    @abstractmethod
    async def put(self, handle: str, answer: str, ttl_seconds: int) -> None:
        """Store (or replace) the answer for handle. Raises ChallengeStoreError."""

    @abstractmethod
    async def get(self, handle: str) -> Optional[str]:
        """Return the pending answer, or None if absent or expired."""

    @abstractmethod
    async def consume(self, handle: str) -> bool:
        """Delete the pending answer. True if this call removed it."""


class RedisChallengeStore(ChallengeStore):
    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    async def put(self, handle: str, answer: str, ttl_seconds: int) -> None:
        try:
            await self.redis.set(KEY_PREFIX + handle, answer, ex=ttl_seconds)
        except RedisError as e:
            raise ChallengeStoreError(details={"reason": str(e)}) from e

    async def get(self, handle: str) -> Optional[str]:
        try:
            value = await self.redis.get(KEY_PREFIX + handle)
        except RedisError as e:
            raise ChallengeStoreError(details={"reason": str(e)}) from e
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def consume(self, handle: str) -> bool:
        try:
            removed = await self.redis.delete(KEY_PREFIX + handle)
        except RedisError as e:
            raise ChallengeStoreError(details={"reason": str(e)}) from e
        return removed == 1


class MemoryChallengeStore(ChallengeStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def put(self, handle: str, answer: str, ttl_seconds: int) -> None:
        self._purge()
        # Re-insert so the newest challenge is last
        self._entries.pop(handle, None)
        self._entries[handle] = (answer, self._clock() + ttl_seconds)

    async def get(self, handle: str) -> Optional[str]:
        entry = self._entries.get(handle)
        if entry is None:
            return None
        answer, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[handle]
            return None
        return answer

    async def consume(self, handle: str) -> bool:
        return self._entries.pop(handle, None) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def _purge(self) -> None:
        now = self._clock()
        expired = [h for h, (_, exp) in self._entries.items() if exp <= now]
        for handle in expired:
            del self._entries[handle]
