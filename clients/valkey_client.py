"""
Valkey (Redis-compatible) client for invoice cache entries, checkout locks
and the notification replay window.

Simple wrapper around redis-py. Connection URL from Vault.
Fail-fast: raises on connection failure, never returns fallback values.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)

# Atomic compare-and-delete so a lock is only released by its owner
_DELETE_IF_EQUALS = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set_json("key", {"a": 1}, expire_seconds=300)
        value = client.get_json("key")  # Returns None if missing
    """

    def __init__(self, url: str):
        """
        Initialize Valkey connection.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)

        Raises:
            redis.ConnectionError: If connection fails
        """
        self._client = redis.from_url(url, decode_responses=True)
        # Verify connectivity immediately (fail-fast)
        self._client.ping()
        self._delete_if_equals = self._client.register_script(_DELETE_IF_EQUALS)
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """
        Health check.

        Returns True if Valkey responds.
        Raises redis.ConnectionError if unreachable.
        """
        self._client.ping()
        return True

    def get(self, key: str) -> str | None:
        """
        Get value by key.

        Returns None if key doesn't exist (not an error).
        Raises on connection failure.
        """
        return self._client.get(key)

    def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        """
        Set key to value, optionally with expiration.

        Args:
            key: Key to set
            value: Value to store
            expire_seconds: TTL in seconds (None for no expiration)
        """
        if expire_seconds is not None:
            self._client.setex(key, expire_seconds, value)
        else:
            self._client.set(key, value)

    def set_if_absent(self, key: str, value: str, expire_seconds: int) -> bool:
        """
        Set key only if it does not exist yet (SET NX EX).

        Returns True if this call created the key, False if it already existed.
        Used for checkout locks and nonce replay detection.
        """
        return bool(self._client.set(key, value, nx=True, ex=expire_seconds))

    def delete(self, key: str) -> bool:
        """
        Delete key.

        Returns True if key existed and was deleted, False if key didn't exist.
        """
        return self._client.delete(key) > 0

    def delete_if_equals(self, key: str, expected: str) -> bool:
        """
        Delete key only if it still holds the expected value.

        Returns True if deleted. A lock that expired and was taken over by
        another request is left alone.
        """
        return bool(self._delete_if_equals(keys=[key], args=[expected]))

    def exists(self, key: str) -> bool:
        """Check if key exists."""
        return self._client.exists(key) > 0

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        """
        Set key to JSON-serialized value.

        Args:
            key: Key to set
            value: Dict or list to serialize
            expire_seconds: TTL in seconds (None for no expiration)
        """
        json_str = json.dumps(value)
        self.set(key, json_str, expire_seconds)

    def get_json(self, key: str) -> dict | list | None:
        """
        Get and deserialize JSON value.

        Returns None if key doesn't exist.
        Raises ValueError if value is not valid JSON.
        """
        value = self.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
