"""Initial schema: vehicles, drivers, trips, maintenance logs and expenses.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        )
    ]
    if with_updated:
        cols.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
            )
        )
    return cols


def upgrade() -> None:
    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("model", sa.String(120), nullable=False),
        sa.Column("license_plate", sa.String(32), unique=True, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column(
            "type",
            sa.Enum("TRUCK", "VAN", "BIKE", name="vehicletype"),
            nullable=False,
        ),
        sa.Column("max_capacity", sa.Float, nullable=False),
        sa.Column("odometer", sa.Float, nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum(
                "AVAILABLE", "ON_TRIP", "IN_SHOP", "RETIRED", name="vehiclestatus"
            ),
            nullable=False,
            server_default="AVAILABLE",
        ),
        sa.Column("acquisition_cost", sa.Integer, nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_vehicles_status", "vehicles", ["status"])
    op.create_index("idx_vehicles_type", "vehicles", ["type"])

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("employee_id", sa.String(64), unique=True, nullable=False),
        sa.Column("license_number", sa.String(64), unique=True, nullable=False),
        sa.Column("license_expiry", sa.Date, nullable=False),
        sa.Column("authorized_types", sa.JSON, nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column(
            "duty_status",
            sa.Enum("ON_DUTY", "OFF_DUTY", "SUSPENDED", name="driverstatus"),
            nullable=False,
            server_default="ON_DUTY",
        ),
        sa.Column("completed_trips", sa.Integer, nullable=False, server_default="0"),
        sa.Column("completion_rate", sa.Float, nullable=False, server_default="100"),
        *_timestamps(),
    )
    op.create_index("idx_drivers_duty_status", "drivers", ["duty_status"])
    op.create_index("idx_drivers_license_expiry", "drivers", ["license_expiry"])

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=False
        ),
        sa.Column("origin", sa.String(255), nullable=False),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("cargo_weight", sa.Float, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "DRAFT", "DISPATCHED", "COMPLETED", "CANCELLED", name="tripstatus"
            ),
            nullable=False,
            server_default="DRAFT",
        ),
        sa.Column("odometer_start", sa.Float, nullable=True),
        sa.Column("odometer_end", sa.Float, nullable=True),
        sa.Column("dispatched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revenue", sa.Integer, nullable=True),
        sa.Column("estimated_fuel_cost", sa.Integer, nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_driver_status", "trips", ["driver_id", "status"])
    op.create_index("idx_trips_vehicle_status", "trips", ["vehicle_id", "status"])

    # ── maintenance_logs ──────────────────────────────────────────────
    op.create_table(
        "maintenance_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column(
            "service_type",
            sa.Enum(
                "OIL_CHANGE",
                "TIRE_REPLACEMENT",
                "BRAKE_SERVICE",
                "ENGINE_REPAIR",
                "INSPECTION",
                "OTHER",
                name="servicetype",
            ),
            nullable=False,
        ),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("technician_name", sa.String(120), nullable=True),
        sa.Column("cost", sa.Integer, nullable=False, server_default="0"),
        sa.Column("scheduled_date", sa.Date, nullable=True),
        sa.Column("completed_date", sa.Date, nullable=True),
        sa.Column(
            "status",
            sa.Enum("IN_PROGRESS", "COMPLETED", name="maintenancestatus"),
            nullable=False,
            server_default="IN_PROGRESS",
        ),
        *_timestamps(with_updated=False),
    )
    op.create_index("idx_maintenance_vehicle", "maintenance_logs", ["vehicle_id"])
    op.create_index(
        "uq_maintenance_open_per_vehicle",
        "maintenance_logs",
        ["vehicle_id"],
        unique=True,
        postgresql_where=sa.text("status = 'IN_PROGRESS'"),
    )

    # ── expenses ──────────────────────────────────────────────────────
    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column("trip_id", sa.Integer, sa.ForeignKey("trips.id"), nullable=True),
        sa.Column(
            "type",
            sa.Enum(
                "FUEL", "MAINTENANCE", "TOLL", "INSURANCE", "OTHER", name="expensetype"
            ),
            nullable=False,
        ),
        sa.Column("total_cost", sa.Integer, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("receipt_ref", sa.String(120), nullable=True),
        sa.Column("liters", sa.Float, nullable=True),
        sa.Column("cost_per_liter", sa.Integer, nullable=True),
        sa.Column("odometer_at_fill", sa.Float, nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index("idx_expenses_vehicle", "expenses", ["vehicle_id"])
    op.create_index("idx_expenses_type", "expenses", ["type"])


def downgrade() -> None:
    op.drop_table("expenses")
    op.drop_table("maintenance_logs")
    op.drop_table("trips")
    op.drop_table("drivers")
    op.drop_table("vehicles")
    for enum_name in (
        "expensetype",
        "maintenancestatus",
        "servicetype",
        "tripstatus",
        "driverstatus",
        "vehiclestatus",
        "vehicletype",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
