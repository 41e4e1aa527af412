"""
License-expiry sweep.

Runs ``run_license_expiry_check`` against the in-memory database with a
mocked Redis client standing in for the distributed lock.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from fleetflow.domain import events
from fleetflow.domain.enums import DriverStatus
from fleetflow.workers.license_checker import run_license_expiry_check


@pytest.fixture
def redis():
    client = AsyncMock()
    client.set = AsyncMock(return_value=True)
    client.eval = AsyncMock(return_value=1)
    return client


class TestLicenseSweep:
    @pytest.mark.asyncio
    async def test_suspends_expired_and_warns_expiring(
        self, make_driver, bus, redis, session_factory, clock, today, db_session
    ):
        expired = await make_driver(name="Asha", license_expiry=today - timedelta(days=2))
        expiring = await make_driver(license_expiry=today + timedelta(days=10))
        fine = await make_driver()
        # expiring today is not expired yet
        last_day = await make_driver(license_expiry=today)

        result = await run_license_expiry_check(
            bus, redis, session_factory=session_factory, clock=clock, warning_days=30
        )

        assert result.suspended == [expired.id]
        assert sorted(result.expiring) == sorted([expiring.id, last_day.id])
        assert result.skipped == []
        assert bus.published == [
            (events.DRIVER_LICENSE_EXPIRED, {"driverId": expired.id, "name": "Asha"})
        ]

        for driver in (expired, fine):
            await db_session.refresh(driver)
        assert expired.duty_status == DriverStatus.SUSPENDED
        assert fine.duty_status == DriverStatus.ON_DUTY
        redis.eval.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_suspended_drivers_are_not_swept_again(
        self, make_driver, bus, redis, session_factory, clock, today
    ):
        await make_driver(license_expiry=today - timedelta(days=2))
        await run_license_expiry_check(
            bus, redis, session_factory=session_factory, clock=clock, warning_days=30
        )
        second = await run_license_expiry_check(
            bus, redis, session_factory=session_factory, clock=clock, warning_days=30
        )
        assert second.suspended == []
        assert bus.topics() == [events.DRIVER_LICENSE_EXPIRED]

    @pytest.mark.asyncio
    async def test_driver_on_trip_is_skipped(
        self,
        make_driver,
        make_vehicle,
        trip_service,
        driver_service,
        bus,
        redis,
        session_factory,
        clock,
        today,
        db_session,
    ):
        vehicle = await make_vehicle()
        driver = await make_driver()
        await trip_service.create_trip(
            vehicle_id=vehicle.id, driver_id=driver.id, cargo_weight=100,
            origin="Pune", destination="Nashik",
        )
        await driver_service.update_driver(
            driver.id, license_expiry=today - timedelta(days=1)
        )

        result = await run_license_expiry_check(
            bus, redis, session_factory=session_factory, clock=clock, warning_days=30
        )

        assert result.skipped == [driver.id]
        assert result.suspended == []
        await db_session.refresh(driver)
        assert driver.duty_status == DriverStatus.OFF_DUTY
        assert events.DRIVER_LICENSE_EXPIRED not in bus.topics()

    @pytest.mark.asyncio
    async def test_lock_held_elsewhere(self, make_driver, bus, session_factory, clock, today):
        await make_driver(license_expiry=today - timedelta(days=2))
        redis = AsyncMock()
        redis.set = AsyncMock(return_value=False)

        result = await run_license_expiry_check(
            bus, redis, session_factory=session_factory, clock=clock
        )

        assert result.suspended == result.skipped == result.expiring == []
        redis.eval.assert_not_called()
        assert bus.published == []

    @pytest.mark.asyncio
    async def test_lock_released_when_sweep_fails(self, bus, redis, clock):
        broken_factory = MagicMock(side_effect=RuntimeError("database unavailable"))

        result = await run_license_expiry_check(
            bus, redis, session_factory=broken_factory, clock=clock
        )

        assert result.suspended == []
        redis.eval.assert_awaited_once()
