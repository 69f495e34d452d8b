from __future__ import annotations

import os
from typing import Any, cast

import redis

from .interface import KeyValueBackend


class RedisKeyValueBackend(KeyValueBackend):
    """Redis-backed key-value store.

    Each key maps to a plain string value at ``{prefix}:{key}``. Pass an
    existing ``client`` to share a connection pool.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        key_prefix: str = "todo",
        client: Any | None = None,
    ) -> None:
        if client is not None:
            self._redis = client
        else:
            self._redis = redis.Redis.from_url(
                url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
            )
        self._prefix = key_prefix.rstrip(":")

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def get(self, key: str) -> bytes | None:
        raw = self._redis.get(self._key(key))
        if raw is None:
            return None
        if isinstance(raw, str):
            return raw.encode("utf-8")
        return cast(bytes, raw)

    def set(self, key: str, value: bytes) -> None:
        self._redis.set(self._key(key), value)

    def delete(self, key: str) -> None:
        self._redis.delete(self._key(key))

    def ping(self) -> bool:
        try:
            return bool(self._redis.ping())
        except redis.exceptions.RedisError:
            return False


__all__ = ["RedisKeyValueBackend"]
