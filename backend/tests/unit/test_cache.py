"""
Tests for services/cache.py - Redis cache service
"""

import pytest
import json
from unittest.mock import MagicMock, patch

import redis

from services.cache import PLAN_PREFIX, TRANSCRIPT_PREFIX, RedisCache


@pytest.fixture
def connected_cache():
    """RedisCache wired to a mock client that answers ping"""
    cache = RedisCache()
    cache._client = MagicMock()
    cache._connected = True
    return cache


class TestRedisCacheKeyGeneration:
    """Tests for key sanitization"""

    def test_sanitize_key_replaces_spaces(self):
        assert RedisCache()._sanitize_key("user 1") == "user_1"

    def test_sanitize_key_replaces_slashes(self):
        assert RedisCache()._sanitize_key("org/user") == "org-user"

    def test_sanitize_key_handles_multiple_replacements(self):
        assert RedisCache()._sanitize_key("org/user 1") == "org-user_1"


class TestRedisCacheConnection:

    @patch('services.cache.redis.Redis')
    def test_connect_success(self, mock_redis):
        client = MagicMock()
        mock_redis.return_value = client

        cache = RedisCache()
        assert cache.connect() is True
        client.ping.assert_called()
        assert cache.is_connected is True

    @patch('services.cache.redis.Redis')
    def test_connect_failure(self, mock_redis):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("refused")
        mock_redis.return_value = client

        cache = RedisCache()
        assert cache.connect() is False
        assert cache.is_connected is False

    def test_lost_connection_detected(self, connected_cache):
        connected_cache._client.ping.side_effect = redis.ConnectionError("gone")
        assert connected_cache.is_connected is False

    @patch('services.cache.redis.Redis')
    def test_unavailable_cache_returns_none(self, mock_redis):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("refused")
        mock_redis.return_value = client

        cache = RedisCache()
        assert cache.get("anything") is None
        assert cache.set("anything", 1) is False
        assert cache.delete("anything") is False


class TestRedisCacheOperations:

    def test_get_decodes_json(self, connected_cache):
        connected_cache._client.get.return_value = json.dumps([{"code": "BLG 101E"}])
        assert connected_cache.get("k") == [{"code": "BLG 101E"}]

    def test_get_miss(self, connected_cache):
        connected_cache._client.get.return_value = None
        assert connected_cache.get("k") is None

    def test_get_corrupt_value(self, connected_cache):
        connected_cache._client.get.return_value = "{not json"
        assert connected_cache.get("k") is None

    def test_get_redis_error(self, connected_cache):
        connected_cache._client.get.side_effect = redis.TimeoutError("slow")
        assert connected_cache.get("k") is None

    def test_set_with_ttl(self, connected_cache):
        assert connected_cache.set("k", {"a": 1}, ttl=42) is True
        connected_cache._client.setex.assert_called_once_with("k", 42, json.dumps({"a": 1}))

    def test_set_unserializable(self, connected_cache):
        assert connected_cache.set("k", object()) is False

    def test_transcript_keys(self, connected_cache):
        connected_cache._client.get.return_value = None
        connected_cache.get_transcript("user 1")
        connected_cache._client.get.assert_called_with(f"{TRANSCRIPT_PREFIX}user_1")

        connected_cache.set_transcript("user 1", [])
        key, _ttl, _value = connected_cache._client.setex.call_args[0]
        assert key == f"{TRANSCRIPT_PREFIX}user_1"

    def test_invalidate_user(self, connected_cache):
        connected_cache.invalidate_user("u1")
        deleted = [c[0][0] for c in connected_cache._client.delete.call_args_list]
        assert deleted == [f"{TRANSCRIPT_PREFIX}u1", f"{PLAN_PREFIX}u1"]


class TestCacheAvailability:

    @patch('services.cache.get_cache')
    def test_is_cache_available(self, mock_get_cache):
        from services.cache import is_cache_available

        mock_get_cache.return_value.is_connected = True
        assert is_cache_available() is True

        mock_get_cache.return_value.is_connected = False
        assert is_cache_available() is False
