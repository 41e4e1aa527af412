"""
Background License-Expiry Worker
================================

Runs every ``LICENSE_CHECK_INTERVAL_SECONDS`` (default once a day).

Concurrency safety
------------------
* **Redis distributed lock** ensures only one instance sweeps the driver
  table per cycle across multiple API processes.
* Each suspension goes through ``DriverService.update_duty_status`` and is
  its own unit of work, so one driver failing does not roll back the rest.

Algorithm per cycle
-------------------
1. Fetch non-suspended drivers whose license expires within the warning
   window.
2. Expired ones are suspended (their DRAFT trips are cancelled) and
   ``driver.licenseExpired`` is published.  A driver out on a dispatched
   trip cannot be suspended; they are skipped and retried next cycle.
3. The rest are logged as expiring soon.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetflow.config import settings
from fleetflow.domain import events
from fleetflow.domain.enums import DriverStatus
from fleetflow.domain.errors import ConflictError
from fleetflow.domain.rules import is_license_expired
from fleetflow.infrastructure.database import async_session_factory
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.infrastructure.locks import DistributedLock
from fleetflow.infrastructure.repositories import DriverRepository
from fleetflow.services.base import Clock, utcnow
from fleetflow.services.drivers import DriverService

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


@dataclass
class SweepResult:
    suspended: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    expiring: list[int] = field(default_factory=list)


# ── Public API ────────────────────────────────────────────────────────


async def start_license_check_loop(bus: EventBus, redis: aioredis.Redis) -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop(bus, redis))
    logger.info(
        "License worker started (interval=%ds)",
        settings.license_check_interval_seconds,
    )


async def stop_license_check_loop() -> None:
    global _task, _stop_event
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    _task = _stop_event = None
    logger.info("License worker stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop(bus: EventBus, redis: aioredis.Redis) -> None:
    """Periodic loop: run a sweep then sleep."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_license_expiry_check(bus, redis)
        except Exception:
            logger.exception("Unhandled error in license sweep")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.license_check_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass


async def run_license_expiry_check(
    bus: EventBus,
    redis: aioredis.Redis,
    *,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    clock: Clock = utcnow,
    warning_days: int | None = None,
) -> SweepResult:
    """Execute one sweep.  Returns which drivers were suspended, skipped or warned."""
    if warning_days is None:
        warning_days = settings.license_warning_days
    result = SweepResult()

    lock = DistributedLock(redis, "license_expiry_check", ttl_seconds=300)
    if not await lock.acquire():
        logger.debug("Lock held by another worker – skipping sweep")
        return result

    try:
        async with session_factory() as session:
            today = clock().date()
            drivers = await DriverRepository(session).get_licenses_expiring_by(
                today + timedelta(days=warning_days)
            )
            service = DriverService(session, bus, clock, warning_days)
            # A rollback expires every loaded row; work from plain values.
            candidates = [(d.id, d.name, d.license_expiry) for d in drivers]

            for driver_id, name, expiry in candidates:
                if not is_license_expired(expiry, today):
                    logger.warning(
                        "Driver %s (%s) license expires in %d day(s)",
                        name, driver_id, (expiry - today).days,
                    )
                    result.expiring.append(driver_id)
                    continue

                try:
                    await service.update_duty_status(driver_id, DriverStatus.SUSPENDED)
                except ConflictError as exc:
                    logger.warning(
                        "Driver %s has an expired license but cannot be suspended yet: %s",
                        driver_id, exc.message,
                    )
                    result.skipped.append(driver_id)
                    continue

                result.suspended.append(driver_id)
                service.publish(
                    events.DRIVER_LICENSE_EXPIRED,
                    {"driverId": driver_id, "name": name},
                )

        if result.suspended:
            logger.info(
                "License sweep: %d driver(s) suspended", len(result.suspended)
            )
    except Exception:
        logger.exception("Error in license sweep")
    finally:
        await lock.release()

    return result
