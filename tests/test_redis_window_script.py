"""Fixed-window limiter running the Lua hit script on an in-process Redis.

fakeredis executes the script server-side, so these tests cover the script
itself rather than the mapping of a mocked reply.
"""

from concurrent.futures import ThreadPoolExecutor

import fakeredis
import pytest

from app.adapters.rate_limit.redis_store import RedisCounterStore
from app.core.rate_limit import Admission, FixedWindowRateLimiter

KEY = "token:k"
REDIS_KEY = "count:token:k"


@pytest.fixture
def redis_client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(redis_client: fakeredis.FakeRedis) -> RedisCounterStore:
    return RedisCounterStore(redis_client)


@pytest.fixture
def limiter(store: RedisCounterStore) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(store)


def test_first_hit_creates_counter_with_window_ttl(
    limiter: FixedWindowRateLimiter, redis_client: fakeredis.FakeRedis
) -> None:
    result = limiter.check_and_increment(KEY)

    assert result.admission is Admission.ALLOW
    assert result.count == 0
    assert redis_client.get(REDIS_KEY) == "0"
    assert 899 <= redis_client.ttl(REDIS_KEY) <= 900


def test_window_admits_one_extra_request(
    limiter: FixedWindowRateLimiter, redis_client: fakeredis.FakeRedis
) -> None:
    admitted = [limiter.check_and_increment(KEY).allowed for _ in range(61)]
    assert all(admitted)

    rejected = limiter.check_and_increment(KEY)
    assert rejected.admission is Admission.REJECT
    assert rejected.count == 60
    assert redis_client.get(REDIS_KEY) == "60"


def test_rejection_does_not_mutate_counter(
    limiter: FixedWindowRateLimiter, redis_client: fakeredis.FakeRedis
) -> None:
    redis_client.set(REDIS_KEY, 60, ex=900)

    for _ in range(3):
        assert not limiter.check_and_increment(KEY).allowed

    assert redis_client.get(REDIS_KEY) == "60"


def test_hits_never_extend_the_window(
    limiter: FixedWindowRateLimiter, redis_client: fakeredis.FakeRedis
) -> None:
    redis_client.set(REDIS_KEY, 5, ex=120)

    for _ in range(10):
        limiter.check_and_increment(KEY)

    assert 0 < redis_client.ttl(REDIS_KEY) <= 120
    assert redis_client.get(REDIS_KEY) == "15"


def test_counter_without_expiry_gets_window_ttl(
    limiter: FixedWindowRateLimiter, redis_client: fakeredis.FakeRedis
) -> None:
    redis_client.set(REDIS_KEY, 3)
    assert redis_client.ttl(REDIS_KEY) == -1

    result = limiter.check_and_increment(KEY)

    assert result.allowed
    assert result.count == 4
    assert 899 <= redis_client.ttl(REDIS_KEY) <= 900


def test_window_resets_after_key_expires(
    limiter: FixedWindowRateLimiter, redis_client: fakeredis.FakeRedis
) -> None:
    for _ in range(61):
        limiter.check_and_increment(KEY)
    assert not limiter.check_and_increment(KEY).allowed

    redis_client.delete(REDIS_KEY)

    result = limiter.check_and_increment(KEY)
    assert result.allowed
    assert result.count == 0


@pytest.mark.parametrize("workers", [10, 100])
def test_concurrent_increments_are_not_lost(
    store: RedisCounterStore, redis_client: fakeredis.FakeRedis, workers: int
) -> None:
    limiter = FixedWindowRateLimiter(store, max_requests=10_000)
    limiter.check_and_increment(KEY)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda _: limiter.check_and_increment(KEY), range(workers)))

    assert all(r.allowed for r in results)
    assert redis_client.get(REDIS_KEY) == str(workers)
    assert sorted(r.count for r in results) == list(range(1, workers + 1))
