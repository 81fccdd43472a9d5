"""
Unit tests for the fixed-window rate limiter and its stores.
"""
import pytest
import redis

from portal.rate_limit import (
    FixedWindowRateLimiter,
    MemoryWindowStore,
    RedisWindowStore,
    LOGIN_LIMIT_MESSAGE
)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return FixedWindowRateLimiter(MemoryWindowStore(clock), limit=5, window_seconds=900, scope='login')


class TestMemoryWindow:
    """Tests for the in-process store."""

    def test_allows_up_to_limit(self, limiter):
        results = [limiter.hit('1.2.3.4') for _ in range(5)]
        assert all(r.allowed for r in results)
        assert [r.remaining for r in results] == [4, 3, 2, 1, 0]

    def test_blocks_over_limit(self, limiter):
        for _ in range(5):
            limiter.hit('1.2.3.4')
        result = limiter.hit('1.2.3.4')
        assert not result.allowed
        assert result.remaining == 0

    def test_keyed_by_client(self, limiter):
        for _ in range(6):
            limiter.hit('1.2.3.4')
        assert limiter.hit('5.6.7.8').allowed

    def test_window_rolls_over(self, limiter, clock):
        for _ in range(6):
            limiter.hit('1.2.3.4')

        clock.now += 899
        assert not limiter.hit('1.2.3.4').allowed

        clock.now += 1
        result = limiter.hit('1.2.3.4')
        assert result.allowed
        assert result.remaining == 4
        assert result.reset_at == clock.now + 900

    def test_scopes_do_not_share_counts(self, clock):
        store = MemoryWindowStore(clock)
        api = FixedWindowRateLimiter(store, limit=1, scope='api')
        login = FixedWindowRateLimiter(store, limit=1, scope='login', message=LOGIN_LIMIT_MESSAGE)

        assert api.hit('ip').allowed
        assert login.hit('ip').allowed
        assert not api.hit('ip').allowed

    def test_reset(self, limiter):
        for _ in range(6):
            limiter.hit('1.2.3.4')
        limiter.reset()
        assert limiter.hit('1.2.3.4').allowed

    def test_expired_windows_purged(self, clock):
        store = MemoryWindowStore(clock)
        store.incr('a', 10)
        clock.now += 11
        store.incr('b', 10)
        assert 'a' not in store._windows


class TestRedisWindow:
    """Tests for the redis-backed store."""

    @pytest.fixture
    def client(self, mocker):
        return mocker.MagicMock(spec=redis.Redis)

    def test_first_hit_sets_expiry(self, client):
        client.incr.return_value = 1
        client.ttl.return_value = 900
        count, _ = RedisWindowStore(client).incr('login:ip', 900)

        assert count == 1
        client.incr.assert_called_once_with('ratelimit:login:ip')
        client.expire.assert_called_once_with('ratelimit:login:ip', 900)

    def test_later_hits_keep_expiry(self, client):
        client.incr.return_value = 3
        client.ttl.return_value = 120
        count, _ = RedisWindowStore(client).incr('login:ip', 900)

        assert count == 3
        client.expire.assert_not_called()

    def test_restores_lost_expiry(self, client):
        client.incr.return_value = 4
        client.ttl.return_value = -1
        RedisWindowStore(client).incr('login:ip', 900)
        client.expire.assert_called_once_with('ratelimit:login:ip', 900)

    def test_fails_open_when_unreachable(self, client):
        client.incr.side_effect = redis.ConnectionError('refused')
        limiter = FixedWindowRateLimiter(RedisWindowStore(client), limit=5)

        result = limiter.hit('ip')
        assert result.allowed
        assert result.remaining == 5

    def test_reset_deletes_prefixed_keys(self, client):
        client.scan_iter.return_value = ['ratelimit:api:a', 'ratelimit:login:b']
        RedisWindowStore(client).reset()

        client.scan_iter.assert_called_once_with('ratelimit:*')
        assert client.delete.call_count == 2
