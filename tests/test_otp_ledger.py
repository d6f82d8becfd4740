"""Tests for the OTP ledger backends."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from notes_api.config import Settings
from notes_api.services.otp_ledger import (
    InMemoryOtpLedger,
    OtpChannel,
    OtpEntry,
    OtpPurpose,
    RedisOtpLedger,
    build_otp_ledger,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def make_entry(**overrides) -> OtpEntry:
    values = {
        "code": "123456",
        "expires_at": NOW + timedelta(minutes=2),
        "purpose": OtpPurpose.REGISTER,
        "channel": OtpChannel.EMAIL,
        "destination": "a@x.com",
        "payload": {"name": "Alice", "email": "a@x.com", "phone": None, "password_hash": "h"},
    }
    values.update(overrides)
    return OtpEntry(**values)


async def _hold(ledger, key: str) -> None:
    async with ledger.lock(key):
        await asyncio.sleep(0.001)


class TestOtpEntry:
    def test_expiry_is_strict(self):
        entry = make_entry()
        assert not entry.is_expired(NOW)
        assert not entry.is_expired(entry.expires_at)
        assert entry.is_expired(entry.expires_at + timedelta(seconds=1))

    def test_json_preserves_fields(self):
        entry = make_entry(purpose=OtpPurpose.RESET, channel=OtpChannel.SMS, payload={"user_id": 7})
        restored = OtpEntry.from_json(entry.to_json())

        assert restored == entry
        assert restored.purpose is OtpPurpose.RESET
        assert restored.expires_at.tzinfo is not None


class TestInMemoryOtpLedger:
    async def test_put_get_delete(self):
        ledger = InMemoryOtpLedger()
        entry = make_entry()

        await ledger.put("a@x.com", entry)
        assert await ledger.get("a@x.com") is entry
        assert len(ledger) == 1

        await ledger.delete("a@x.com")
        assert await ledger.get("a@x.com") is None
        # Deleting twice is harmless
        await ledger.delete("a@x.com")
        assert len(ledger) == 0

    async def test_put_replaces(self):
        ledger = InMemoryOtpLedger()
        await ledger.put("a@x.com", make_entry(code="111111"))
        await ledger.put("a@x.com", make_entry(code="222222"))
        assert (await ledger.get("a@x.com")).code == "222222"

    async def test_expired_entries_stay_readable(self):
        ledger = InMemoryOtpLedger()
        await ledger.put("a@x.com", make_entry(expires_at=NOW - timedelta(hours=1)))
        assert await ledger.get("a@x.com") is not None

    async def test_locks_are_per_key(self):
        ledger = InMemoryOtpLedger()
        async with ledger.lock("a@x.com"):
            # A different key is not blocked
            await asyncio.wait_for(_hold(ledger, "b@x.com"), timeout=1)

    async def test_released_locks_are_dropped(self):
        ledger = InMemoryOtpLedger()
        async with ledger.lock("a@x.com"):
            assert len(ledger._locks) == 1
        assert ledger._locks == {}

        for i in range(50):
            async with ledger.lock(f"user{i}@x.com"):
                pass
        assert ledger._locks == {}

    async def test_contended_lock_dropped_after_last_holder(self):
        ledger = InMemoryOtpLedger()
        await asyncio.gather(*(_hold(ledger, "a@x.com") for _ in range(5)))
        assert ledger._locks == {}

    async def test_lock_released_on_error(self):
        ledger = InMemoryOtpLedger()
        with pytest.raises(RuntimeError):
            async with ledger.lock("a@x.com"):
                raise RuntimeError("boom")
        assert ledger._locks == {}
        await asyncio.wait_for(_hold(ledger, "a@x.com"), timeout=1)

    async def test_lock_serializes_writers(self):
        ledger = InMemoryOtpLedger()
        order = []

        async def writer(name: str):
            async with ledger.lock("a@x.com"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(writer("first"), writer("second"))
        assert order == ["first-in", "first-out", "second-in", "second-out"]


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.delete = AsyncMock()
    client.aclose = AsyncMock()
    return client


class TestRedisOtpLedger:
    async def test_put_sets_ttl_with_grace(self, redis_client):
        ledger = RedisOtpLedger(redis_client, ttl_seconds=120, grace_seconds=600)
        entry = make_entry()

        await ledger.put("a@x.com", entry)

        redis_client.set.assert_awaited_once_with("otp:a@x.com", entry.to_json(), ex=720)

    async def test_get_decodes_entry(self, redis_client):
        entry = make_entry()
        redis_client.get.return_value = entry.to_json().encode()
        ledger = RedisOtpLedger(redis_client, ttl_seconds=120)

        assert await ledger.get("a@x.com") == entry
        redis_client.get.assert_awaited_once_with("otp:a@x.com")

    async def test_get_missing(self, redis_client):
        ledger = RedisOtpLedger(redis_client, ttl_seconds=120)
        assert await ledger.get("a@x.com") is None

    async def test_unreadable_entry_is_discarded(self, redis_client):
        redis_client.get.return_value = b"not json"
        ledger = RedisOtpLedger(redis_client, ttl_seconds=120)

        assert await ledger.get("a@x.com") is None
        redis_client.delete.assert_awaited_once_with("otp:a@x.com")

    def test_lock_uses_redis_lock(self, redis_client):
        ledger = RedisOtpLedger(redis_client, ttl_seconds=120, lock_timeout=5)

        ledger.lock("a@x.com")

        redis_client.lock.assert_called_once_with("otp-lock:a@x.com", timeout=5, blocking_timeout=5)

    async def test_close(self, redis_client):
        await RedisOtpLedger(redis_client, ttl_seconds=120).close()
        redis_client.aclose.assert_awaited_once()


class TestBuildOtpLedger:
    def test_memory_backend(self):
        assert isinstance(build_otp_ledger(Settings(otp_backend="memory")), InMemoryOtpLedger)

    def test_redis_backend(self):
        settings = Settings(otp_backend="redis", redis_url="redis://localhost:6379/3")
        ledger = build_otp_ledger(settings)
        assert isinstance(ledger, RedisOtpLedger)

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValueError):
            Settings(otp_backend="memcached")
