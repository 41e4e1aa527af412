"""
Concurrency safety tests.

Demonstrates:
1. Compare-and-set claims: of two writers racing for the same vehicle or
   driver, only the one that still sees the expected status wins.
2. Distributed lock prevents simultaneous acquire.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from fleetflow.domain.enums import DriverStatus, VehicleStatus
from fleetflow.infrastructure.locks import DistributedLock, LockNotAcquired
from fleetflow.infrastructure.repositories import DriverRepository, VehicleRepository


class TestStatusClaims:
    """Repository-level compare-and-set guards."""

    @pytest.mark.asyncio
    async def test_second_vehicle_claim_loses(self, make_vehicle, db_session):
        vehicle = await make_vehicle()
        repo = VehicleRepository(db_session)

        first = await repo.claim(vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.ON_TRIP)
        second = await repo.claim(vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.IN_SHOP)
        await db_session.commit()

        assert first is True
        assert second is False
        assert vehicle.status == VehicleStatus.ON_TRIP

    @pytest.mark.asyncio
    async def test_vehicle_claim_can_set_extra_values(self, make_vehicle, db_session):
        vehicle = await make_vehicle()
        repo = VehicleRepository(db_session)

        assert await repo.claim(
            vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.RETIRED, name="Scrapped"
        )
        await db_session.commit()
        assert vehicle.name == "Scrapped"

    @pytest.mark.asyncio
    async def test_second_driver_claim_loses(self, make_driver, db_session):
        driver = await make_driver()
        repo = DriverRepository(db_session)

        assert await repo.claim(driver.id, DriverStatus.ON_DUTY, DriverStatus.OFF_DUTY)
        assert not await repo.claim(driver.id, DriverStatus.ON_DUTY, DriverStatus.OFF_DUTY)
        await db_session.commit()
        assert driver.duty_status == DriverStatus.OFF_DUTY

    @pytest.mark.asyncio
    async def test_claim_on_missing_row(self, db_session):
        repo = VehicleRepository(db_session)
        assert not await repo.claim(42, VehicleStatus.AVAILABLE, VehicleStatus.ON_TRIP)


class TestDistributedLock:
    """Tests the Redis distributed lock logic (mocked Redis)."""

    @pytest.mark.asyncio
    async def test_acquire_succeeds(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=True)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        assert await lock.acquire() is True
        mock_redis.set.assert_awaited_once_with(
            "fleetflow:lock:test-key", lock.token, nx=True, ex=10
        )

    @pytest.mark.asyncio
    async def test_acquire_fails_if_held(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=False)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        assert await lock.acquire() is False

    @pytest.mark.asyncio
    async def test_release_calls_eval(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=True)
        mock_redis.eval = AsyncMock(return_value=1)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        await lock.acquire()
        assert await lock.release() is True

        mock_redis.eval.assert_called_once()

    @pytest.mark.asyncio
    async def test_release_after_expiry_reports_false(self):
        mock_redis = AsyncMock()
        mock_redis.eval = AsyncMock(return_value=0)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        assert await lock.release() is False

    @pytest.mark.asyncio
    async def test_tokens_are_unique_per_lock(self):
        mock_redis = AsyncMock()
        a = DistributedLock(mock_redis, "sweep")
        b = DistributedLock(mock_redis, "sweep")
        assert a.key == b.key
        assert a.token != b.token

    @pytest.mark.asyncio
    async def test_context_manager_acquire_fail_raises(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=False)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        with pytest.raises(LockNotAcquired, match="Could not acquire lock"):
            async with lock:
                pass
