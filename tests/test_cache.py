"""Test suite for cache backends."""
import pytest
import redis
from unittest.mock import MagicMock

from transfill.services.cache import (
    MemoryCache,
    RedisCache,
    build_cache,
    dispatch_key,
    failure_key,
    value_key,
)
from transfill.services.exceptions import StoreUnavailable


class TestCacheKeys:

    def test_key_formats(self):
        assert value_key('greeting.hello', 'bn') == 'translation.greeting.hello.bn'
        assert dispatch_key('greeting.hello', 'bn') == 'translation.dispatch.greeting.hello.bn'
        assert failure_key('greeting.hello', 'bn') == 'translation.failures.greeting.hello.bn'

    def test_marker_never_collides_with_value(self):
        assert dispatch_key('greeting.hello', 'bn') != value_key('greeting.hello', 'bn')


class TestMemoryCache:
    """TTL semantics of the per-process cache."""

    @pytest.fixture
    def clock(self):
        return [0.0]

    @pytest.fixture
    def mem(self, clock):
        return MemoryCache(clock=lambda: clock[0])

    def test_put_get_has(self, mem):
        assert mem.get('a') is None
        assert not mem.has('a')

        mem.put('a', 'x', 10)

        assert mem.get('a') == 'x'
        assert mem.has('a')

    def test_entries_expire(self, mem, clock):
        mem.put('a', 'x', 10)
        clock[0] = 10.0
        assert mem.get('a') is None

    def test_add_only_when_absent(self, mem, clock):
        assert mem.add('m', '1', 60) is True
        assert mem.add('m', '1', 60) is False
        clock[0] = 61.0
        assert mem.add('m', '1', 60) is True

    def test_incr(self, mem, clock):
        assert mem.incr('n', 100) == 1
        assert mem.incr('n', 100) == 2
        clock[0] = 300.0
        assert mem.incr('n', 100) == 1

    def test_clear_evicts_everything(self, mem):
        mem.put('a', 'x', 10)
        mem.add('m', '1', 60)

        mem.clear()

        assert not mem.has('a')
        assert mem.add('m', '1', 60) is True

    def test_delete(self, mem):
        mem.put('a', 'x', 10)
        mem.delete('a')
        mem.delete('missing')
        assert not mem.has('a')


class TestRedisCache:
    """RedisCache maps calls onto redis commands."""

    def test_put_uses_setex(self):
        client = MagicMock()
        RedisCache(client).put('k', 'v', 86400)
        client.setex.assert_called_once_with('k', 86400, 'v')

    def test_add_uses_set_nx(self):
        client = MagicMock()
        client.set.return_value = None

        assert RedisCache(client).add('k', '1', 60) is False
        client.set.assert_called_once_with('k', '1', ex=60, nx=True)

    def test_has(self):
        client = MagicMock()
        client.exists.return_value = 1
        assert RedisCache(client).has('k') is True

    def test_incr_sets_expiry(self):
        client = MagicMock()
        pipe = client.pipeline.return_value
        pipe.execute.return_value = [3, True]

        assert RedisCache(client).incr('n', 3600) == 3
        pipe.incr.assert_called_once_with('n')
        pipe.expire.assert_called_once_with('n', 3600)

    def test_redis_errors_become_store_unavailable(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError('refused')

        with pytest.raises(StoreUnavailable):
            RedisCache(client).get('k')


class TestBuildCache:

    def test_without_redis_url(self):
        assert isinstance(build_cache({'REDIS_URL': None}), MemoryCache)

    def test_with_redis_url(self):
        cache = build_cache({'REDIS_URL': 'redis://localhost:6379/0'})
        assert isinstance(cache, RedisCache)
