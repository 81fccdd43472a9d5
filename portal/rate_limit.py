"""
Fixed-window rate limiting keyed by client address.

Counters live in a process-wide store that resets each key when its
window rolls over. A redis store can be configured instead so several
worker processes share one set of counters.
"""
import logging
import threading
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Dict, Tuple

import redis
from flask import Flask, current_app, g, request

from .errors import RateLimited

logger = logging.getLogger(__name__)

API_LIMIT_MESSAGE = 'Too many requests. Please try again after 15 minutes.'
LOGIN_LIMIT_MESSAGE = 'Too many login attempts. Please try again after 15 minutes.'


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float


class MemoryWindowStore:
    """In-process counters guarded by a lock."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def incr(self, key: str, window_seconds: int) -> Tuple[int, float]:
        """Count one hit for key; return (hits in current window, window end)."""
        with self._lock:
            now = self.clock()
            started, count = self._windows.get(key, (None, 0))
            if started is None or now >= started + window_seconds:
                self._purge_expired(now, window_seconds)
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            return count, started + window_seconds

    def _purge_expired(self, now: float, window_seconds: int):
        expired = [k for k, (started, _) in self._windows.items() if now >= started + window_seconds]
        for k in expired:
            del self._windows[k]

    def reset(self):
        with self._lock:
            self._windows.clear()


class RedisWindowStore:
    """Counters shared through redis INCR/EXPIRE."""

    def __init__(self, client: redis.Redis, prefix: str = 'ratelimit'):
        self.redis = client
        self.prefix = prefix

    def incr(self, key: str, window_seconds: int) -> Tuple[int, float]:
        redis_key = f"{self.prefix}:{key}"
        count = self.redis.incr(redis_key)
        if count == 1:
            self.redis.expire(redis_key, window_seconds)

        ttl = self.redis.ttl(redis_key)
        if ttl is None or ttl < 0:
            # Key lost its expiry (e.g. crash between INCR and EXPIRE)
            self.redis.expire(redis_key, window_seconds)
            ttl = window_seconds
        return count, time.time() + ttl

    def reset(self):
        for redis_key in self.redis.scan_iter(f"{self.prefix}:*"):
            self.redis.delete(redis_key)


class FixedWindowRateLimiter:
    def __init__(self, store, limit: int, window_seconds: int = 900, scope: str = 'api', message: str = API_LIMIT_MESSAGE):
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self.scope = scope
        self.message = message

    def hit(self, client_key: str) -> RateLimitResult:
        try:
            count, reset_at = self.store.incr(f"{self.scope}:{client_key}", self.window_seconds)
        except redis.RedisError as e:
            logger.warning(f"Rate limit store unavailable, allowing request: {e}")
            return RateLimitResult(True, self.limit, self.limit, time.time() + self.window_seconds)

        return RateLimitResult(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(self.limit - count, 0),
            reset_at=reset_at
        )

    def reset(self):
        self.store.reset()


def _client_key() -> str:
    return request.remote_addr or 'unknown'


def _enforce(name: str):
    limiter = current_app.extensions['rate_limiters'][name]
    result = limiter.hit(_client_key())
    g.rate_limit = result
    if not result.allowed:
        logger.warning(f"Rate limit '{name}' exceeded by {_client_key()} on {request.method} {request.path}")
        raise RateLimited(limiter.message)


def rate_limited(name: str):
    """Apply the named limiter to a view, on top of the global API limit."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            _enforce(name)
            return view(*args, **kwargs)
        return wrapper
    return decorator


def build_store(app: Flask):
    url = app.config.get('RATELIMIT_STORAGE_URL')
    if url:
        client = redis.from_url(url, decode_responses=True, socket_connect_timeout=2, socket_timeout=2)
        logger.info("Rate limit counters stored in redis")
        return RedisWindowStore(client)
    return MemoryWindowStore()


def init_rate_limiting(app: Flask):
    store = build_store(app)
    window = app.config['RATELIMIT_WINDOW_SECONDS']

    app.extensions['rate_limiters'] = {
        'api': FixedWindowRateLimiter(store, app.config['RATELIMIT_API_LIMIT'], window, 'api', API_LIMIT_MESSAGE),
        'login': FixedWindowRateLimiter(store, app.config['RATELIMIT_LOGIN_LIMIT'], window, 'login', LOGIN_LIMIT_MESSAGE),
    }

    @app.before_request
    def limit_api_requests():
        if request.path.startswith('/api/') and request.method != 'OPTIONS':
            _enforce('api')

    @app.after_request
    def add_rate_limit_headers(response):
        result = g.get('rate_limit')
        if result is not None:
            response.headers['RateLimit-Limit'] = str(result.limit)
            response.headers['RateLimit-Remaining'] = str(result.remaining)
            response.headers['RateLimit-Reset'] = str(max(int(result.reset_at - time.time()), 0))
        return response
