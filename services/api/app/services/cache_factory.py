from __future__ import annotations

import os

from services.api.app.services.cache_base import IdempotencyCache
from services.api.app.services.cache_memory import memory_cache


def get_idempotency_cache() -> IdempotencyCache | None:
    """Select the idempotency cache based on env vars.

    Defaults to the in-process cache so tests and local dev need no Redis. Returns None
    when deduplication is switched off.
    """

    mode = os.getenv("ECOMGM_IDEMPOTENCY_CACHE", "memory").strip().lower()

    if mode == "memory":
        return memory_cache

    if mode == "redis":
        from services.api.app.services.cache_redis import RedisIdempotencyCache

        return RedisIdempotencyCache.from_env()

    if mode in ("off", "none", "disabled"):
        return None

    raise ValueError(
        f"Unknown ECOMGM_IDEMPOTENCY_CACHE={mode!r}. Expected memory, redis or off."
    )
