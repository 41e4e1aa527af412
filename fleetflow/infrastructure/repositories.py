"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.

Two concurrency primitives are exposed here:

* ``*_for_update`` readers issue ``SELECT ... FOR UPDATE`` (a no-op on
  SQLite, which serialises writers anyway).
* ``claim`` methods are compare-and-set updates
  (``UPDATE ... WHERE id = ? AND status = ?``) that report whether the row
  was actually moved, closing the check-then-write race on dispatch.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    DriverModel,
    ExpenseModel,
    MaintenanceLogModel,
    TripModel,
    VehicleModel,
)
from fleetflow.domain.enums import (
    DriverStatus,
    ExpenseType,
    MaintenanceStatus,
    TripStatus,
    VehicleStatus,
    VehicleType,
)


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, vehicle: VehicleModel) -> VehicleModel:
        self.session.add(vehicle)
        await self.session.flush()
        return vehicle

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        return await self.session.get(VehicleModel, vehicle_id)

    async def get_by_plate(self, plate: str) -> Optional[VehicleModel]:
        result = await self.session.execute(
            select(VehicleModel).where(VehicleModel.license_plate == plate)
        )
        return result.scalar_one_or_none()

    async def find(
        self,
        status: VehicleStatus | None = None,
        vehicle_type: VehicleType | None = None,
    ) -> list[VehicleModel]:
        query = select(VehicleModel).order_by(VehicleModel.id.desc())
        if status:
            query = query.where(VehicleModel.status == status)
        if vehicle_type:
            query = query.where(VehicleModel.type == vehicle_type)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_available(self) -> list[VehicleModel]:
        return await self.find(status=VehicleStatus.AVAILABLE)

    async def claim(
        self,
        vehicle_id: int,
        expected: VehicleStatus,
        new: VehicleStatus,
        **values: Any,
    ) -> bool:
        """Move the vehicle to *new* only if it is still *expected*."""
        result = await self.session.execute(
            update(VehicleModel)
            .where(VehicleModel.id == vehicle_id, VehicleModel.status == expected)
            .values(status=new, **values)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, driver: DriverModel) -> DriverModel:
        self.session.add(driver)
        await self.session.flush()
        return driver

    async def get_by_id(self, driver_id: int) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)

    async def get_by_id_for_update(self, driver_id: int) -> Optional[DriverModel]:
        result = await self.session.execute(
            select(DriverModel)
            .where(DriverModel.id == driver_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_conflicting(
        self,
        employee_id: str | None,
        license_number: str | None,
        exclude_id: int | None = None,
    ) -> Optional[DriverModel]:
        """Another driver already holding this employee id or license."""
        clauses = []
        if employee_id:
            clauses.append(DriverModel.employee_id == employee_id)
        if license_number:
            clauses.append(DriverModel.license_number == license_number)
        if not clauses:
            return None
        query = select(DriverModel).where(or_(*clauses))
        if exclude_id is not None:
            query = query.where(DriverModel.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def find(self, duty_status: DriverStatus | None = None) -> list[DriverModel]:
        query = select(DriverModel).order_by(DriverModel.id.desc())
        if duty_status:
            query = query.where(DriverModel.duty_status == duty_status)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_available(self, today: date) -> list[DriverModel]:
        result = await self.session.execute(
            select(DriverModel).where(
                DriverModel.duty_status == DriverStatus.ON_DUTY,
                DriverModel.license_expiry >= today,
            )
        )
        return list(result.scalars().all())

    async def get_licenses_expiring_by(self, cutoff: date) -> list[DriverModel]:
        """Non-suspended drivers whose license expires on or before *cutoff*."""
        result = await self.session.execute(
            select(DriverModel)
            .where(
                DriverModel.license_expiry <= cutoff,
                DriverModel.duty_status != DriverStatus.SUSPENDED,
            )
            .order_by(DriverModel.license_expiry)
        )
        return list(result.scalars().all())

    async def claim(
        self, driver_id: int, expected: DriverStatus, new: DriverStatus
    ) -> bool:
        """Move the driver to *new* only if still *expected*."""
        result = await self.session.execute(
            update(DriverModel)
            .where(DriverModel.id == driver_id, DriverModel.duty_status == expected)
            .values(duty_status=new)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, trip: TripModel) -> TripModel:
        self.session.add(trip)
        await self.session.flush()
        return trip

    async def get_by_id(self, trip_id: int) -> Optional[TripModel]:
        return await self.session.get(TripModel, trip_id)

    async def get_by_id_for_update(self, trip_id: int) -> Optional[TripModel]:
        """SELECT ... FOR UPDATE so a second complete/cancel waits its turn."""
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.id == trip_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def claim(
        self,
        trip_id: int,
        expected: TripStatus,
        new: TripStatus,
        **values: Any,
    ) -> bool:
        """Move the trip to *new* only if it is still *expected*."""
        result = await self.session.execute(
            update(TripModel)
            .where(TripModel.id == trip_id, TripModel.status == expected)
            .values(status=new, **values)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    async def find(
        self,
        status: TripStatus | None = None,
        vehicle_id: int | None = None,
        driver_id: int | None = None,
    ) -> list[TripModel]:
        query = select(TripModel).order_by(TripModel.id.desc())
        if status:
            query = query.where(TripModel.status == status)
        if vehicle_id is not None:
            query = query.where(TripModel.vehicle_id == vehicle_id)
        if driver_id is not None:
            query = query.where(TripModel.driver_id == driver_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_for_driver(
        self, driver_id: int, status: TripStatus | None = None
    ) -> int:
        query = (
            select(func.count())
            .select_from(TripModel)
            .where(TripModel.driver_id == driver_id)
        )
        if status:
            query = query.where(TripModel.status == status)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def count_for_vehicle(self, vehicle_id: int, status: TripStatus) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(TripModel)
            .where(TripModel.vehicle_id == vehicle_id, TripModel.status == status)
        )
        return result.scalar() or 0

    async def get_drafts(
        self, *, driver_id: int | None = None, vehicle_id: int | None = None
    ) -> list[TripModel]:
        query = select(TripModel).where(TripModel.status == TripStatus.DRAFT)
        if driver_id is not None:
            query = query.where(TripModel.driver_id == driver_id)
        if vehicle_id is not None:
            query = query.where(TripModel.vehicle_id == vehicle_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())


class MaintenanceRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, log: MaintenanceLogModel) -> MaintenanceLogModel:
        self.session.add(log)
        await self.session.flush()
        return log

    async def get_by_id(self, log_id: int) -> Optional[MaintenanceLogModel]:
        return await self.session.get(MaintenanceLogModel, log_id)

    async def get_by_id_for_update(self, log_id: int) -> Optional[MaintenanceLogModel]:
        result = await self.session.execute(
            select(MaintenanceLogModel)
            .where(MaintenanceLogModel.id == log_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_open_for_vehicle(
        self, vehicle_id: int
    ) -> Optional[MaintenanceLogModel]:
        result = await self.session.execute(
            select(MaintenanceLogModel).where(
                MaintenanceLogModel.vehicle_id == vehicle_id,
                MaintenanceLogModel.status == MaintenanceStatus.IN_PROGRESS,
            )
        )
        return result.scalars().first()

    async def find(
        self,
        vehicle_id: int | None = None,
        status: MaintenanceStatus | None = None,
    ) -> list[MaintenanceLogModel]:
        query = select(MaintenanceLogModel).order_by(MaintenanceLogModel.id.desc())
        if vehicle_id is not None:
            query = query.where(MaintenanceLogModel.vehicle_id == vehicle_id)
        if status:
            query = query.where(MaintenanceLogModel.status == status)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def sum_completed_cost(self, vehicle_id: int) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.sum(MaintenanceLogModel.cost), 0)).where(
                MaintenanceLogModel.vehicle_id == vehicle_id,
                MaintenanceLogModel.status == MaintenanceStatus.COMPLETED,
            )
        )
        return int(result.scalar() or 0)


class ExpenseRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, expense: ExpenseModel) -> ExpenseModel:
        self.session.add(expense)
        await self.session.flush()
        return expense

    async def find(
        self,
        vehicle_id: int | None = None,
        expense_type: ExpenseType | None = None,
    ) -> list[ExpenseModel]:
        query = select(ExpenseModel).order_by(
            ExpenseModel.date.desc(), ExpenseModel.id.desc()
        )
        if vehicle_id is not None:
            query = query.where(ExpenseModel.vehicle_id == vehicle_id)
        if expense_type:
            query = query.where(ExpenseModel.type == expense_type)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def sum_for_vehicle(
        self, vehicle_id: int, expense_type: ExpenseType | None = None
    ) -> int:
        query = select(func.coalesce(func.sum(ExpenseModel.total_cost), 0)).where(
            ExpenseModel.vehicle_id == vehicle_id
        )
        if expense_type:
            query = query.where(ExpenseModel.type == expense_type)
        result = await self.session.execute(query)
        return int(result.scalar() or 0)
