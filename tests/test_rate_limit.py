"""Rate limiting tests against an in-process fake of the Redis calls used."""

import pytest

from notekeep.middleware import rate_limit


class FakePipeline:
    def __init__(self, store):
        self.store = store
        self.ops = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def incr(self, key):
        self.ops.append(("incr", key))

    def expire(self, key, seconds):
        self.ops.append(("expire", key))

    async def execute(self):
        results = []
        for op, key in self.ops:
            if op == "incr":
                self.store.counts[key] = self.store.counts.get(key, 0) + 1
                results.append(self.store.counts[key])
            else:
                self.store.ttls.add(key)
                results.append(True)
        return results


class FakeRedis:
    def __init__(self):
        self.counts = {}
        self.ttls = set()

    def pipeline(self, transaction=True):
        return FakePipeline(self)


@pytest.fixture()
def fake_redis(monkeypatch):
    redis = FakeRedis()
    monkeypatch.setattr(rate_limit, "get_redis", lambda: redis)
    return redis


def test_bucket_for_paths():
    assert rate_limit.bucket_for("/api/auth/captcha") == "auth"
    assert rate_limit.bucket_for("/api/auth/login") == "auth"
    assert rate_limit.bucket_for("/api/notes") == "api"
    assert rate_limit.bucket_for("/health") == "api"


@pytest.mark.asyncio
async def test_hit_counts_and_sets_ttl(fake_redis):
    assert await rate_limit.hit(fake_redis, "k") == 1
    assert await rate_limit.hit(fake_redis, "k") == 2
    assert "k" in fake_redis.ttls


@pytest.mark.asyncio
async def test_auth_bucket_limited_separately(client, fake_redis):
    # Test settings keep the default auth budget of 10 per minute
    for _ in range(10):
        r = await client.get("/api/auth/captcha")
        assert r.status_code == 200
        assert "X-RateLimit-Remaining" in r.headers

    r = await client.get("/api/auth/captcha")
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "60"
    body = r.json()
    assert body["success"] is False
    assert body["error"]["code"] == "rate_limited"

    # The general bucket is untouched
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.headers["X-RateLimit-Limit"] == "100"
