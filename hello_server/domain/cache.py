"""Key-value cache contract and its Redis-backed implementation."""

from typing import Protocol

import redis

from hello_server.bootstrap.config import CacheSettings


class CacheError(Exception):
    """Raised when the cache cannot complete an operation."""


class CacheMiss(CacheError):
    """Raised when a requested key does not exist."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key '{key}' not found")
        self.key = key


class CacheClient(Protocol):
    """Operations the handlers need from a key-value store.

    Implementations must be safe to call from several worker threads at once.
    """

    def get(self, key: str) -> str:
        """Return the value stored under ``key`` or raise ``CacheMiss``."""
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def ping(self) -> None:
        ...


class RedisCache:
    """CacheClient backed by a pooled ``redis.Redis`` connection."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> "RedisCache":
        client = redis.Redis(
            host=settings.host,
            port=settings.port,
            db=settings.db,
            password=settings.password,
            socket_timeout=settings.timeout_seconds,
            socket_connect_timeout=settings.timeout_seconds,
            decode_responses=True,
        )
        return cls(client)

    def get(self, key: str) -> str:
        try:
            value = self._client.get(key)
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc
        except UnicodeDecodeError as exc:
            # Stored bytes that are not UTF-8 cannot be served as text.
            raise CacheError(f"Value for key '{key}' is not valid UTF-8") from exc
        if value is None:
            raise CacheMiss(key)
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self._client.set(key, value)
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc

    def ping(self) -> None:
        try:
            self._client.ping()
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc

    def close(self) -> None:
        self._client.close()
