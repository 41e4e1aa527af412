"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.infrastructure.database import async_session_factory
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.services.drivers import DriverService
from fleetflow.services.expenses import ExpenseService
from fleetflow.services.maintenance import MaintenanceService
from fleetflow.services.trips import TripService
from fleetflow.services.vehicles import VehicleService


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_event_bus(request: Request) -> Optional[EventBus]:
    """The application-wide bus created in ``create_app``."""
    return getattr(request.app.state, "event_bus", None)


def get_vehicle_service(
    db: AsyncSession = Depends(get_db),
    bus: Optional[EventBus] = Depends(get_event_bus),
) -> VehicleService:
    return VehicleService(db, bus)


def get_driver_service(
    db: AsyncSession = Depends(get_db),
    bus: Optional[EventBus] = Depends(get_event_bus),
) -> DriverService:
    return DriverService(db, bus)


def get_trip_service(
    db: AsyncSession = Depends(get_db),
    bus: Optional[EventBus] = Depends(get_event_bus),
) -> TripService:
    return TripService(db, bus)


def get_maintenance_service(
    db: AsyncSession = Depends(get_db),
    bus: Optional[EventBus] = Depends(get_event_bus),
) -> MaintenanceService:
    return MaintenanceService(db, bus)


def get_expense_service(
    db: AsyncSession = Depends(get_db),
    bus: Optional[EventBus] = Depends(get_event_bus),
) -> ExpenseService:
    return ExpenseService(db, bus)
