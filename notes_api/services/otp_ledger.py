"""Expiring storage for pending one-time codes.

The identity service only sees the ``OtpLedger`` interface. The in-memory
backend suits a single process; the Redis backend shares entries between
workers. Both serialize writers for the same key through ``lock(key)``.
Expiry is checked by the caller when a code is verified, so an expired entry
stays readable until it is consumed or overwritten.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

import redis.asyncio as aioredis

from notes_api.config import Settings

logger = logging.getLogger(__name__)


class OtpPurpose(StrEnum):
    """What a pending code unlocks."""

    REGISTER = "register"
    RESET = "reset"


class OtpChannel(StrEnum):
    EMAIL = "email"
    SMS = "sms"


@dataclass
class OtpEntry:
    """A pending code together with its expiry and payload."""

    code: str
    expires_at: datetime
    purpose: OtpPurpose
    channel: OtpChannel
    destination: str
    payload: dict[str, Any] = field(default_factory=dict)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def to_json(self) -> str:
        data = asdict(self)
        data["expires_at"] = self.expires_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "OtpEntry":
        data = json.loads(raw)
        return cls(
            code=data["code"],
            expires_at=datetime.fromisoformat(data["expires_at"]),
            purpose=OtpPurpose(data["purpose"]),
            channel=OtpChannel(data["channel"]),
            destination=data["destination"],
            payload=data.get("payload") or {},
        )


class OtpLedger(ABC):
    """Interface for pending one-time code storage, keyed by normalized identifier."""

    @abstractmethod
    async def get(self, key: str) -> OtpEntry | None:
        """Return the entry for ``key`` (expired or not), or None."""

    @abstractmethod
    async def put(self, key: str, entry: OtpEntry) -> None:
        """Store ``entry`` under ``key``, replacing any previous one."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry for ``key`` if present."""

    @abstractmethod
    def lock(self, key: str) -> AbstractAsyncContextManager:
        """Mutual exclusion for read-modify-write sequences on one key."""

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryOtpLedger(OtpLedger):
    """Process-local ledger backed by a dict.

    A key's lock exists only while someone holds or waits for it, so lookups
    for unknown identifiers leave nothing behind.
    """

    def __init__(self) -> None:
        self._entries: dict[str, OtpEntry] = {}
        # key -> (lock, number of holders and waiters)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    async def get(self, key: str) -> OtpEntry | None:
        return self._entries.get(key)

    async def put(self, key: str, entry: OtpEntry) -> None:
        self._entries[key] = entry

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    @asynccontextmanager
    async def lock(self, key: str):
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    def __len__(self) -> int:
        return len(self._entries)


class RedisOtpLedger(OtpLedger):
    """Ledger shared between processes through Redis.

    Entries carry their own ``expires_at``; the Redis TTL is that expiry plus
    ``grace_seconds`` so a late verification still reports "expired" instead
    of "not found", while abandoned entries are eventually reclaimed.
    """

    KEY_PREFIX = "otp:"
    LOCK_PREFIX = "otp-lock:"

    def __init__(
        self,
        redis_client: aioredis.Redis,
        ttl_seconds: int,
        grace_seconds: int = 3600,
        lock_timeout: float = 10,
    ) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds
        self._grace_seconds = grace_seconds
        self._lock_timeout = lock_timeout

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "RedisOtpLedger":
        return cls(aioredis.from_url(url), ttl_seconds)

    async def get(self, key: str) -> OtpEntry | None:
        raw = await self._redis.get(self.KEY_PREFIX + key)
        if raw is None:
            return None
        try:
            return OtpEntry.from_json(raw)
        except (ValueError, KeyError):
            logger.warning(f"Discarding unreadable OTP entry for {key}")
            await self.delete(key)
            return None

    async def put(self, key: str, entry: OtpEntry) -> None:
        await self._redis.set(
            self.KEY_PREFIX + key,
            entry.to_json(),
            ex=self._ttl_seconds + self._grace_seconds,
        )

    async def delete(self, key: str) -> None:
        await self._redis.delete(self.KEY_PREFIX + key)

    def lock(self, key: str) -> AbstractAsyncContextManager:
        return self._redis.lock(
            self.LOCK_PREFIX + key,
            timeout=self._lock_timeout,
            blocking_timeout=self._lock_timeout,
        )

    async def close(self) -> None:
        await self._redis.aclose()


def build_otp_ledger(settings: Settings) -> OtpLedger:
    """Create the ledger backend selected by ``OTP_BACKEND``."""
    if settings.otp_backend == "redis":
        logger.info("Using Redis OTP ledger")
        return RedisOtpLedger.from_url(settings.redis_url, settings.otp_ttl_seconds)
    logger.info("Using in-memory OTP ledger")
    return InMemoryOtpLedger()
