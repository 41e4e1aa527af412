"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models are used as-is:
``FOR UPDATE`` compiles away on SQLite and the partial unique index on
open service logs is emitted with ``sqlite_where``.

Services get a fixed clock and a recording event bus so assertions can
look at exactly what was published.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from itertools import count
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from fleetflow.domain.enums import VehicleType
from fleetflow.infrastructure.database import Base
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.infrastructure import models  # noqa: F401  (registers tables)
from fleetflow.services.drivers import DriverService
from fleetflow.services.expenses import ExpenseService
from fleetflow.services.maintenance import MaintenanceService
from fleetflow.services.trips import TripService
from fleetflow.services.vehicles import VehicleService


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
TestSessionFactory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

NOW = datetime(2026, 6, 15, 9, 30, tzinfo=timezone.utc)


class RecordingEventBus(EventBus):
    """EventBus that also keeps every ``(topic, payload)`` it was handed."""

    def __init__(self) -> None:
        super().__init__()
        self.published: list[tuple[str, dict]] = []

    def publish(self, topic, payload):
        self.published.append((topic, payload))
        return super().publish(topic, payload)

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.published]


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory():
    return TestSessionFactory


@pytest.fixture
def bus() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def today() -> date:
    return NOW.date()


@pytest.fixture
def vehicle_service(db_session, bus, clock) -> VehicleService:
    return VehicleService(db_session, bus, clock)


@pytest.fixture
def driver_service(db_session, bus, clock) -> DriverService:
    return DriverService(db_session, bus, clock, warning_days=30)


@pytest.fixture
def trip_service(db_session, bus, clock) -> TripService:
    return TripService(db_session, bus, clock)


@pytest.fixture
def maintenance_service(db_session, bus, clock) -> MaintenanceService:
    return MaintenanceService(db_session, bus, clock)


@pytest.fixture
def expense_service(db_session, bus, clock) -> ExpenseService:
    return ExpenseService(db_session, bus, clock)


@pytest.fixture
def make_vehicle(vehicle_service):
    """Register a vehicle with sensible defaults; keyword overrides win."""
    seq = count(1)

    async def _make(**overrides):
        n = next(seq)
        data = {
            "name": f"Truck {n}",
            "model": "Prima 4028.S",
            "license_plate": f"MH-12-AB-{1000 + n}",
            "year": 2021,
            "type": VehicleType.TRUCK,
            "max_capacity": 1000.0,
            "odometer": 10_000.0,
        }
        data.update(overrides)
        return await vehicle_service.create_vehicle(**data)

    return _make


@pytest.fixture
def make_driver(driver_service, today):
    """Register an ON_DUTY driver with a long-valid license."""
    seq = count(1)

    async def _make(**overrides):
        n = next(seq)
        data = {
            "name": f"Driver {n}",
            "employee_id": f"EMP-{n:03d}",
            "license_number": f"DL-{n:06d}",
            "license_expiry": date(today.year + 2, 1, 1),
            "authorized_types": ["TRUCK", "VAN"],
        }
        data.update(overrides)
        return await driver_service.create_driver(**data)

    return _make
