from __future__ import annotations

import hashlib
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from services.api.app.services.cache_base import IdempotencyCache, IdempotencyCacheError
from services.api.app.services.cache_factory import get_idempotency_cache

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TTL_SECONDS = 60
DEFAULT_RESULT_TTL_SECONDS = 24 * 60 * 60


class IdempotencyInProgressError(Exception):
    def __init__(self, idempotency_key: str) -> None:
        super().__init__(
            "A request with this Idempotency-Key is still being processed. Retry shortly."
        )
        self.idempotency_key = idempotency_key


@dataclass(frozen=True, slots=True)
class Reuse:
    result: dict[str, Any]


@dataclass(frozen=True, slots=True)
class Proceed:
    # None means the call is not deduplicated (no key, or the cache is unreachable).
    token: str | None


class IdempotencyGuard:
    """At-most-once execution per (actor, Idempotency-Key).

    A short-lived lock entry marks a request in flight; a long-lived result entry holds
    the response to replay. The cache is advisory: if it cannot be reached the guard
    lets the request through without deduplication.
    """

    def __init__(
        self,
        cache: IdempotencyCache | None,
        *,
        scope: str = "order",
        lock_ttl_seconds: int = DEFAULT_LOCK_TTL_SECONDS,
        result_ttl_seconds: int = DEFAULT_RESULT_TTL_SECONDS,
    ) -> None:
        self._cache = cache
        self._scope = scope
        self._lock_ttl_seconds = lock_ttl_seconds
        self._result_ttl_seconds = result_ttl_seconds

    @classmethod
    def from_env(cls, scope: str = "order") -> "IdempotencyGuard":
        try:
            cache = get_idempotency_cache()
        except IdempotencyCacheError as e:
            logger.warning("idempotency_cache_unavailable", extra={"error": str(e)})
            cache = None

        return cls(
            cache,
            scope=scope,
            lock_ttl_seconds=int(
                os.getenv("ECOMGM_IDEMPOTENCY_LOCK_TTL_SECONDS", str(DEFAULT_LOCK_TTL_SECONDS))
            ),
            result_ttl_seconds=int(
                os.getenv(
                    "ECOMGM_IDEMPOTENCY_RESULT_TTL_SECONDS", str(DEFAULT_RESULT_TTL_SECONDS)
                )
            ),
        )

    def key_for(self, actor_id: int | str, idempotency_key: str) -> str:
        digest = hashlib.sha256(idempotency_key.encode("utf-8")).hexdigest()
        return f"idem:{self._scope}:{actor_id}:{digest}"

    def begin_or_reuse(self, actor_id: int | str, idempotency_key: str | None) -> Reuse | Proceed:
        if not idempotency_key or self._cache is None:
            return Proceed(token=None)

        token = self.key_for(actor_id, idempotency_key)
        try:
            cached = self._cache.get(f"{token}:result")
            if cached is None:
                acquired = self._cache.set_if_absent(
                    f"{token}:lock", datetime.utcnow().isoformat(), self._lock_ttl_seconds
                )
                if acquired:
                    return Proceed(token=token)
                # The holder may have stored its result between the two reads.
                cached = self._cache.get(f"{token}:result")
        except Exception as e:
            logger.warning(
                "idempotency_cache_unavailable",
                extra={"actor_id": actor_id, "error": str(e)},
            )
            return Proceed(token=None)

        if cached is None:
            raise IdempotencyInProgressError(idempotency_key)

        logger.info("idempotency_replay", extra={"actor_id": actor_id})
        return Reuse(result=json.loads(cached))

    def complete(self, token: str | None, result: dict[str, Any]) -> None:
        """Store the result, then release the lock.

        The result must be readable before the lock disappears, otherwise a racing retry
        could see neither and execute a second time.
        """

        if token is None or self._cache is None:
            return

        try:
            self._cache.set(
                f"{token}:result",
                json.dumps(result, default=str),
                self._result_ttl_seconds,
            )
        except Exception as e:
            logger.warning("idempotency_result_store_failed", extra={"error": str(e)})
        finally:
            self._release(token)

    def abort(self, token: str | None) -> None:
        if token is None or self._cache is None:
            return
        self._release(token)

    def _release(self, token: str) -> None:
        try:
            self._cache.delete(f"{token}:lock")
        except Exception as e:
            # The lock TTL still frees the key eventually.
            logger.warning("idempotency_lock_release_failed", extra={"error": str(e)})
