"""Expense ledger and per-vehicle cost summary."""

from __future__ import annotations

import pytest

from fleetflow.domain.enums import ExpenseType
from fleetflow.domain.errors import NotFoundError, ValidationError


@pytest.fixture
async def completed_trip(make_vehicle, make_driver, trip_service):
    vehicle = await make_vehicle(odometer=1000.0)
    driver = await make_driver()
    trip = await trip_service.create_trip(
        vehicle_id=vehicle.id, driver_id=driver.id, cargo_weight=100,
        origin="Pune", destination="Mumbai",
    )
    await trip_service.complete_trip(trip.id, 1200.0)
    return vehicle, trip


class TestExpenses:
    @pytest.mark.asyncio
    async def test_fuel_log_total_rounds_half_up(self, expense_service, completed_trip, today):
        vehicle, trip = completed_trip
        expense = await expense_service.create_fuel_log(
            vehicle_id=vehicle.id, trip_id=trip.id, liters=10.5,
            cost_per_liter=95, odometer_at_fill=1150.0, date=today,
        )
        # 10.5 * 95 = 997.5
        assert expense.total_cost == 998
        assert expense.type == ExpenseType.FUEL
        assert expense.liters == 10.5

    @pytest.mark.asyncio
    async def test_generic_expense(self, expense_service, completed_trip, today):
        vehicle, trip = completed_trip
        expense = await expense_service.create_expense(
            vehicle_id=vehicle.id, trip_id=trip.id, type="TOLL", amount=450,
            date=today, receipt_ref="TOLL-881",
        )
        assert expense.total_cost == 450
        assert expense.type == ExpenseType.TOLL

    @pytest.mark.asyncio
    async def test_trip_must_belong_to_vehicle(
        self, expense_service, completed_trip, make_vehicle, today
    ):
        _, trip = completed_trip
        other = await make_vehicle()
        with pytest.raises(ValidationError):
            await expense_service.create_expense(
                vehicle_id=other.id, trip_id=trip.id, type="TOLL", amount=10, date=today
            )

    @pytest.mark.asyncio
    async def test_unknown_references(self, expense_service, make_vehicle, today):
        vehicle = await make_vehicle()
        with pytest.raises(NotFoundError) as exc:
            await expense_service.create_expense(
                vehicle_id=999, type="OTHER", amount=10, date=today
            )
        assert exc.value.code == "VEHICLE_NOT_FOUND"
        with pytest.raises(NotFoundError) as exc:
            await expense_service.create_expense(
                vehicle_id=vehicle.id, trip_id=999, type="OTHER", amount=10, date=today
            )
        assert exc.value.code == "TRIP_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, expense_service, make_vehicle, today):
        vehicle = await make_vehicle()
        with pytest.raises(ValidationError):
            await expense_service.create_expense(
                vehicle_id=vehicle.id, type="OTHER", amount=0, date=today
            )

    @pytest.mark.asyncio
    async def test_list_filters_by_type(self, expense_service, completed_trip, today):
        vehicle, trip = completed_trip
        await expense_service.create_expense(
            vehicle_id=vehicle.id, type="INSURANCE", amount=12_000, date=today
        )
        fuel = await expense_service.create_fuel_log(
            vehicle_id=vehicle.id, trip_id=trip.id, liters=20,
            cost_per_liter=100, odometer_at_fill=1100.0, date=today,
        )
        listed = await expense_service.list_expenses(
            vehicle_id=vehicle.id, expense_type=ExpenseType.FUEL
        )
        assert [e.id for e in listed] == [fuel.id]


class TestCostSummary:
    @pytest.mark.asyncio
    async def test_summary(
        self, expense_service, maintenance_service, completed_trip, today
    ):
        vehicle, trip = completed_trip
        await expense_service.create_fuel_log(
            vehicle_id=vehicle.id, trip_id=trip.id, liters=30,
            cost_per_liter=100, odometer_at_fill=1100.0, date=today,
        )
        await expense_service.create_expense(
            vehicle_id=vehicle.id, type="TOLL", amount=500, date=today
        )
        log = await maintenance_service.open_service_log(
            vehicle.id, service_type="OIL_CHANGE", cost=1500
        )
        await maintenance_service.complete_service_log(log.id, today)
        # an open log is not counted
        await maintenance_service.open_service_log(
            vehicle.id, service_type="INSPECTION", cost=9999
        )

        summary = await expense_service.vehicle_cost_summary(vehicle.id)
        assert summary.fuel_total == 3000
        assert summary.maintenance_total == 1500
        assert summary.grand_total == 5000
        assert summary.cost_per_km == round(5000 / 1200.0, 2)

    @pytest.mark.asyncio
    async def test_zero_odometer(self, expense_service, make_vehicle, today):
        vehicle = await make_vehicle(odometer=0.0)
        await expense_service.create_expense(
            vehicle_id=vehicle.id, type="INSURANCE", amount=100, date=today
        )
        summary = await expense_service.vehicle_cost_summary(vehicle.id)
        assert summary.cost_per_km == 0.0
        assert summary.grand_total == 100
