"""Cache collaborators for translated values and dispatch markers.

Two backends share one capability set (has/get/put/add/incr/delete):
- RedisCache: shared across web and worker processes (production)
- MemoryCache: per-process, used when REDIS_URL is not configured and in tests.
  It also has clear(), which drops every entry to simulate eviction.
"""

import logging
import threading
import time
from functools import wraps

import redis

from transfill.services.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

VALUE_PREFIX = 'translation'
DISPATCH_PREFIX = 'translation.dispatch'
FAILURE_PREFIX = 'translation.failures'


def value_key(key: str, lang: str) -> str:
    """Cache key holding the translated value."""
    return f"{VALUE_PREFIX}.{key}.{lang}"


def dispatch_key(key: str, lang: str) -> str:
    """Short-lived marker set while a fill job for (key, lang) is in flight."""
    return f"{DISPATCH_PREFIX}.{key}.{lang}"


def failure_key(key: str, lang: str) -> str:
    """Counter of consecutive failed fills for (key, lang)."""
    return f"{FAILURE_PREFIX}.{key}.{lang}"


def _redis_errors(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except redis.RedisError as e:
            raise StoreUnavailable(f"Redis {method.__name__} failed: {e}") from e
    return wrapper


class RedisCache:
    """Cache backed by a redis client created with decode_responses=True."""

    def __init__(self, client):
        self.client = client

    @_redis_errors
    def has(self, key):
        return self.client.exists(key) > 0

    @_redis_errors
    def get(self, key):
        return self.client.get(key)

    @_redis_errors
    def put(self, key, value, ttl):
        self.client.setex(key, ttl, value)

    @_redis_errors
    def add(self, key, value, ttl) -> bool:
        """Set key only if it does not exist yet. Returns True if it was set."""
        return bool(self.client.set(key, value, ex=ttl, nx=True))

    @_redis_errors
    def incr(self, key, ttl) -> int:
        pipe = self.client.pipeline()
        pipe.incr(key)
        pipe.expire(key, ttl)
        count, _ = pipe.execute()
        return int(count)

    @_redis_errors
    def delete(self, key):
        self.client.delete(key)


class MemoryCache:
    """In-process cache with per-entry expiry."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def _live(self, key):
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def has(self, key):
        with self._lock:
            return self._live(key) is not None

    def get(self, key):
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    def put(self, key, value, ttl):
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def add(self, key, value, ttl) -> bool:
        with self._lock:
            if self._live(key) is not None:
                return False
            self._entries[key] = (value, self._clock() + ttl)
            return True

    def incr(self, key, ttl) -> int:
        with self._lock:
            entry = self._live(key)
            count = int(entry[0]) + 1 if entry else 1
            self._entries[key] = (str(count), self._clock() + ttl)
            return count

    def delete(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()


def build_cache(config):
    """Create the cache for this process from app config."""
    redis_url = config.get('REDIS_URL')

    if not redis_url:
        logger.warning("REDIS_URL not set - using per-process memory cache for translations")
        return MemoryCache()

    client = redis.from_url(redis_url, decode_responses=True)
    logger.info("Translation cache using Redis")
    return RedisCache(client)
