"""
Redis Cache Service for Stored Transcripts and Plans

Read-through cache in front of the Firestore stores so that reloading the
dashboard does not read the same documents again.

Features:
- JSON serialization of transcript rows and plan documents
- Separate TTLs for transcripts and plans
- Graceful fallback if Redis is unavailable
- Per-user invalidation on every write or delete
"""

import json
from typing import Optional, List, Dict, Any

import redis

from core.config import (
    REDIS_URL,
    REDIS_HOST,
    REDIS_PORT,
    REDIS_DB,
    REDIS_PASSWORD,
    TRANSCRIPT_CACHE_TTL,
    PLAN_CACHE_TTL,
)


# Cache key prefixes
CACHE_PREFIX = "degree_planner:"
TRANSCRIPT_PREFIX = f"{CACHE_PREFIX}transcript:"
PLAN_PREFIX = f"{CACHE_PREFIX}plan:"

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


class RedisCache:
    """Redis caching service for per-user documents"""

    def __init__(self):
        self._client: Optional[redis.Redis] = None
        self._connected = False

    def connect(self) -> bool:
        """
        Connect to Redis server.

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            # Try URL first, then host/port
            if REDIS_URL and REDIS_URL != DEFAULT_REDIS_URL:
                self._client = redis.from_url(
                    REDIS_URL,
                    decode_responses=True,
                    socket_timeout=5,
                    socket_connect_timeout=5
                )
            else:
                self._client = redis.Redis(
                    host=REDIS_HOST,
                    port=REDIS_PORT,
                    db=REDIS_DB,
                    password=REDIS_PASSWORD,
                    decode_responses=True,
                    socket_timeout=5,
                    socket_connect_timeout=5
                )

            self._client.ping()
            self._connected = True
            print(f"[CACHE] Connected to Redis at {REDIS_HOST}:{REDIS_PORT}")
            return True

        except redis.RedisError as e:
            print(f"[CACHE] Failed to connect to Redis: {e}")
            self._client = None
            self._connected = False
            return False

    @property
    def is_connected(self) -> bool:
        """Check if Redis is connected"""
        if not self._connected or not self._client:
            return False
        try:
            self._client.ping()
            return True
        except redis.RedisError:
            self._connected = False
            return False

    def _ensure_connected(self) -> bool:
        """Ensure Redis is connected, attempt reconnect if not"""
        if self.is_connected:
            return True
        return self.connect()

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        if not self._ensure_connected():
            return None

        try:
            data = self._client.get(key)
            if data:
                return json.loads(data)
            return None
        except (redis.RedisError, ValueError) as e:
            print(f"[CACHE] Get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = TRANSCRIPT_CACHE_TTL) -> bool:
        """Set value in cache with TTL"""
        if not self._ensure_connected():
            return False

        try:
            self._client.setex(key, ttl, json.dumps(value))
            return True
        except (redis.RedisError, TypeError) as e:
            print(f"[CACHE] Set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete a key from cache"""
        if not self._ensure_connected():
            return False

        try:
            self._client.delete(key)
            return True
        except redis.RedisError as e:
            print(f"[CACHE] Delete error for {key}: {e}")
            return False

    def get_transcript(self, user_id: str) -> Optional[List[Dict[str, Any]]]:
        """Get a user's stored transcript rows from cache"""
        return self.get(f"{TRANSCRIPT_PREFIX}{self._sanitize_key(user_id)}")

    def set_transcript(self, user_id: str, courses: List[Dict[str, Any]]) -> bool:
        return self.set(f"{TRANSCRIPT_PREFIX}{self._sanitize_key(user_id)}", courses, TRANSCRIPT_CACHE_TTL)

    def invalidate_transcript(self, user_id: str) -> bool:
        return self.delete(f"{TRANSCRIPT_PREFIX}{self._sanitize_key(user_id)}")

    def get_plan(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a user's stored plan document from cache"""
        return self.get(f"{PLAN_PREFIX}{self._sanitize_key(user_id)}")

    def set_plan(self, user_id: str, document: Dict[str, Any]) -> bool:
        return self.set(f"{PLAN_PREFIX}{self._sanitize_key(user_id)}", document, PLAN_CACHE_TTL)

    def invalidate_plan(self, user_id: str) -> bool:
        return self.delete(f"{PLAN_PREFIX}{self._sanitize_key(user_id)}")

    def invalidate_user(self, user_id: str) -> None:
        """Drop every cached document of a user"""
        self.invalidate_transcript(user_id)
        self.invalidate_plan(user_id)
        print(f"[CACHE] Invalidated cached documents for {user_id}")

    def _sanitize_key(self, key: str) -> str:
        """Sanitize a string for use as Redis key"""
        return key.replace(" ", "_").replace("/", "-")


_cache_instance: Optional[RedisCache] = None


def get_cache() -> RedisCache:
    """Get the singleton cache instance"""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = RedisCache()
        _cache_instance.connect()
    return _cache_instance


def is_cache_available() -> bool:
    """Check if cache is available and connected"""
    cache = get_cache()
    return cache.is_connected
