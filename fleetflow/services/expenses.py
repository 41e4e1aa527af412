"""
Expense ledger
==============

Append-only: expenses are created and read, never updated or deleted.
Amounts are integers in the smallest currency unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseService, Clock, atomic, utcnow
from fleetflow.domain.enums import ExpenseType
from fleetflow.domain.errors import NotFoundError, ValidationError
from fleetflow.domain.rules import cost_per_km, fuel_total_cost
from fleetflow.infrastructure.event_bus import EventBus
from fleetflow.infrastructure.models import ExpenseModel, VehicleModel
from fleetflow.infrastructure.repositories import (
    ExpenseRepository,
    MaintenanceRepository,
    TripRepository,
    VehicleRepository,
)


@dataclass(frozen=True)
class VehicleCostSummary:
    vehicle_id: int
    fuel_total: int
    maintenance_total: int
    grand_total: int
    cost_per_km: float


class ExpenseService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        events: Optional[EventBus] = None,
        clock: Clock = utcnow,
    ):
        super().__init__(session, events, clock)
        self.expenses = ExpenseRepository(session)
        self.vehicles = VehicleRepository(session)
        self.trips = TripRepository(session)
        self.logs = MaintenanceRepository(session)

    async def list_expenses(
        self,
        vehicle_id: int | None = None,
        expense_type: ExpenseType | None = None,
    ) -> list[ExpenseModel]:
        return await self.expenses.find(vehicle_id=vehicle_id, expense_type=expense_type)

    async def create_expense(
        self,
        *,
        vehicle_id: int,
        type: ExpenseType | str,
        amount: int,
        date: date,
        trip_id: int | None = None,
        description: str | None = None,
        receipt_ref: str | None = None,
    ) -> ExpenseModel:
        try:
            expense_type = ExpenseType(type)
        except ValueError as exc:
            raise ValidationError(message=f"Unknown expense type: {type}") from exc
        if amount is None or amount <= 0:
            raise ValidationError(message="amount must be positive")
        await self._check_references(vehicle_id, trip_id)

        async with atomic(self.session):
            expense = await self.expenses.create(
                ExpenseModel(
                    vehicle_id=vehicle_id,
                    trip_id=trip_id,
                    type=expense_type,
                    total_cost=amount,
                    description=description,
                    date=date,
                    receipt_ref=receipt_ref,
                )
            )
        return expense

    async def create_fuel_log(
        self,
        *,
        vehicle_id: int,
        trip_id: int,
        liters: float,
        cost_per_liter: int,
        odometer_at_fill: float,
        date: date,
    ) -> ExpenseModel:
        if liters is None or liters <= 0:
            raise ValidationError(message="liters must be positive")
        if cost_per_liter is None or cost_per_liter <= 0:
            raise ValidationError(message="cost_per_liter must be positive")
        if odometer_at_fill is None or odometer_at_fill <= 0:
            raise ValidationError(message="odometer_at_fill must be positive")
        await self._check_references(vehicle_id, trip_id)

        async with atomic(self.session):
            expense = await self.expenses.create(
                ExpenseModel(
                    vehicle_id=vehicle_id,
                    trip_id=trip_id,
                    type=ExpenseType.FUEL,
                    total_cost=fuel_total_cost(liters, cost_per_liter),
                    liters=liters,
                    cost_per_liter=cost_per_liter,
                    odometer_at_fill=odometer_at_fill,
                    date=date,
                )
            )
        return expense

    async def vehicle_cost_summary(self, vehicle_id: int) -> VehicleCostSummary:
        vehicle = await self._get_vehicle(vehicle_id)
        expenses_total = await self.expenses.sum_for_vehicle(vehicle.id)
        fuel_total = await self.expenses.sum_for_vehicle(vehicle.id, ExpenseType.FUEL)
        maintenance_total = await self.logs.sum_completed_cost(vehicle.id)
        grand_total = expenses_total + maintenance_total
        return VehicleCostSummary(
            vehicle_id=vehicle.id,
            fuel_total=fuel_total,
            maintenance_total=maintenance_total,
            grand_total=grand_total,
            cost_per_km=cost_per_km(grand_total, vehicle.odometer),
        )

    async def _get_vehicle(self, vehicle_id: int) -> VehicleModel:
        vehicle = await self.vehicles.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError("VEHICLE_NOT_FOUND", "Vehicle not found")
        return vehicle

    async def _check_references(self, vehicle_id: int, trip_id: int | None) -> None:
        await self._get_vehicle(vehicle_id)
        if trip_id is None:
            return
        trip = await self.trips.get_by_id(trip_id)
        if not trip:
            raise NotFoundError("TRIP_NOT_FOUND", "Trip not found")
        if trip.vehicle_id != vehicle_id:
            raise ValidationError(message="Trip does not belong to this vehicle")
