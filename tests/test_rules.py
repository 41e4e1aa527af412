"""Unit tests for the pure business rules."""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from fleetflow.domain.enums import (
    DriverStatus,
    LicenseExpiryStatus,
    TripStatus,
    VehicleStatus,
    VehicleType,
)
from fleetflow.domain.errors import (
    ConflictError,
    InvalidStateTransition,
    UnprocessableError,
)
from fleetflow.domain.rules import (
    completion_rate,
    cost_per_km,
    ensure_driver_can_operate,
    ensure_trip_transition,
    ensure_vehicle_can_carry,
    fuel_total_cost,
    is_authorized,
    license_expiry_status,
)

TODAY = date(2026, 6, 15)


class TestCompletionRate:
    def test_no_trips_is_perfect(self):
        assert completion_rate(0, 0) == 100.0

    def test_rounds_to_one_decimal(self):
        assert completion_rate(2, 3) == 66.7
        assert completion_rate(1, 3) == 33.3

    def test_rounds_half_up(self):
        assert completion_rate(1, 8) == 12.5
        # 1/16 = 6.25
        assert completion_rate(1, 16) == 6.3

    def test_all_completed(self):
        assert completion_rate(4, 4) == 100.0


class TestLicenseStatus:
    def test_expiring_today_is_not_expired(self):
        assert license_expiry_status(TODAY, TODAY) == LicenseExpiryStatus.EXPIRING

    def test_expired_yesterday(self):
        assert license_expiry_status(TODAY - timedelta(days=1), TODAY) == LicenseExpiryStatus.EXPIRED

    def test_warning_window_boundary(self):
        edge = TODAY + timedelta(days=30)
        assert license_expiry_status(edge, TODAY, 30) == LicenseExpiryStatus.EXPIRING
        assert license_expiry_status(edge + timedelta(days=1), TODAY, 30) == LicenseExpiryStatus.VALID


class TestTripTransitions:
    @pytest.mark.parametrize(
        "current, target",
        [
            (TripStatus.DRAFT, TripStatus.DISPATCHED),
            (TripStatus.DRAFT, TripStatus.CANCELLED),
            (TripStatus.DISPATCHED, TripStatus.COMPLETED),
            (TripStatus.DISPATCHED, TripStatus.CANCELLED),
        ],
    )
    def test_legal(self, current, target):
        ensure_trip_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (TripStatus.DRAFT, TripStatus.COMPLETED),
            (TripStatus.COMPLETED, TripStatus.CANCELLED),
            (TripStatus.CANCELLED, TripStatus.DISPATCHED),
            (TripStatus.DISPATCHED, TripStatus.DRAFT),
        ],
    )
    def test_illegal(self, current, target):
        with pytest.raises(InvalidStateTransition) as exc:
            ensure_trip_transition(current, target)
        assert exc.value.code == "INVALID_TRIP_STATUS"
        assert exc.value.status_code == 409


class TestDispatchPreconditions:
    def _vehicle(self, **kw):
        values = {"status": VehicleStatus.AVAILABLE, "max_capacity": 500.0}
        values.update(kw)
        return SimpleNamespace(**values)

    def _driver(self, **kw):
        values = {
            "duty_status": DriverStatus.ON_DUTY,
            "license_expiry": TODAY + timedelta(days=365),
            "authorized_types": ["VAN"],
        }
        values.update(kw)
        return SimpleNamespace(**values)

    def test_capacity_is_inclusive(self):
        ensure_vehicle_can_carry(self._vehicle(), 500.0)
        with pytest.raises(UnprocessableError) as exc:
            ensure_vehicle_can_carry(self._vehicle(), 500.5)
        assert exc.value.code == "VEHICLE_OVERLOADED"

    def test_availability_checked_before_capacity(self):
        with pytest.raises(ConflictError) as exc:
            ensure_vehicle_can_carry(self._vehicle(status=VehicleStatus.IN_SHOP), 9999)
        assert exc.value.code == "VEHICLE_NOT_AVAILABLE"

    def test_duty_status_checked_first(self):
        driver = self._driver(
            duty_status=DriverStatus.SUSPENDED,
            license_expiry=TODAY - timedelta(days=1),
            authorized_types=["BIKE"],
        )
        with pytest.raises(ConflictError) as exc:
            ensure_driver_can_operate(driver, VehicleType.VAN, TODAY)
        assert exc.value.code == "DRIVER_NOT_READY"

    def test_license_checked_before_authorization(self):
        driver = self._driver(
            license_expiry=TODAY - timedelta(days=1), authorized_types=["BIKE"]
        )
        with pytest.raises(UnprocessableError) as exc:
            ensure_driver_can_operate(driver, VehicleType.VAN, TODAY)
        assert exc.value.code == "LICENSE_EXPIRED"

    def test_unauthorized_type(self):
        with pytest.raises(UnprocessableError) as exc:
            ensure_driver_can_operate(self._driver(), VehicleType.TRUCK, TODAY)
        assert exc.value.code == "DRIVER_NOT_AUTHORIZED"

    def test_license_expiring_today_can_drive(self):
        ensure_driver_can_operate(self._driver(license_expiry=TODAY), VehicleType.VAN, TODAY)

    def test_is_authorized_accepts_enum_members(self):
        assert is_authorized([VehicleType.VAN, "TRUCK"], "TRUCK")
        assert not is_authorized([], VehicleType.BIKE)


class TestMoney:
    def test_fuel_total_rounds_half_up(self):
        assert fuel_total_cost(10.5, 95) == 998
        assert fuel_total_cost(40, 102) == 4080

    def test_fuel_total_avoids_float_drift(self):
        # 2.675 is stored as 2.67499999... in binary floating point
        assert fuel_total_cost(0.1, 5) == 1
        assert fuel_total_cost(2.675, 100) == 268

    def test_cost_per_km(self):
        assert cost_per_km(5000, 1200.0) == 4.17
        assert cost_per_km(100, 0) == 0.0
