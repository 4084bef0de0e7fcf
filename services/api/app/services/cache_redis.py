from __future__ import annotations

import os
from typing import Any

from services.api.app.services.cache_base import (
    IdempotencyCacheUnavailableError,
    RedisClientMissingError,
)


class RedisIdempotencyCache:
    """Idempotency cache backed by Redis.

    Env vars:
    - ECOMGM_IDEMPOTENCY_CACHE=redis
    - ECOMGM_REDIS_URL (default: redis://localhost:6379/0)
    """

    backend = "REDIS"

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_env(cls) -> "RedisIdempotencyCache":
        try:
            import redis
        except ImportError as e:
            raise RedisClientMissingError() from e

        url = os.getenv("ECOMGM_REDIS_URL", "redis://localhost:6379/0")
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=2.0,
            socket_connect_timeout=2.0,
        )
        return cls(client)

    def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            return bool(self._client.set(key, value, nx=True, ex=ttl_seconds))
        except Exception as e:
            raise IdempotencyCacheUnavailableError(self.backend, str(e)) from e

    def get(self, key: str) -> str | None:
        try:
            value = self._client.get(key)
        except Exception as e:
            raise IdempotencyCacheUnavailableError(self.backend, str(e)) from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._client.set(key, value, ex=ttl_seconds)
        except Exception as e:
            raise IdempotencyCacheUnavailableError(self.backend, str(e)) from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except Exception as e:
            raise IdempotencyCacheUnavailableError(self.backend, str(e)) from e
