from __future__ import annotations

from typing import Protocol


class IdempotencyCacheError(Exception):
    """Base class for idempotency cache errors."""


class IdempotencyCacheUnavailableError(IdempotencyCacheError):
    def __init__(self, backend: str, reason: str) -> None:
        super().__init__(f"Idempotency cache {backend} is unavailable: {reason}")
        self.backend = backend
        self.reason = reason


class RedisClientMissingError(IdempotencyCacheError):
    def __init__(self) -> None:
        super().__init__(
            "redis is not installed. Install the optional extra:\n"
            "  pip install 'ecomgm[redis]'"
        )


class IdempotencyCache(Protocol):
    backend: str

    def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool: ...

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...
