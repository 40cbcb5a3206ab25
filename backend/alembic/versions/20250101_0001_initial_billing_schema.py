"""Initial schema for clients, trips, bills and payments."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20250101_0001"
down_revision = None
branch_labels = None
depends_on = None


TRIP_STATUS = sa.Enum("running", "completed", "locked", name="trip_status_enum")
BILL_STATUS = sa.Enum("generated", "sent", "paid", name="bill_status_enum")
PAYMENT_MODE = sa.Enum("cash", "bank", "upi", name="payment_mode_enum")


def _money(name: str, nullable: bool = False, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(14, 2), nullable=nullable, **kwargs)


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("client_id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("gst_number", sa.String(length=15), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("contact_number", sa.String(length=20), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("clients_name_idx", "clients", ["name"])

    op.create_table(
        "trips",
        sa.Column("trip_id", sa.String(length=36), primary_key=True),
        sa.Column("truck_id", sa.String(length=36), nullable=True),
        sa.Column("truck_number", sa.String(length=20), nullable=True),
        sa.Column("driver_id", sa.String(length=36), nullable=True),
        sa.Column("driver_name", sa.String(length=120), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", TRIP_STATUS, nullable=False, server_default="running"),
        _money("driver_advance", server_default="0"),
        sa.Column("total_km", sa.Numeric(10, 1), nullable=True),
        sa.Column("diesel_quantity", sa.Numeric(10, 2), nullable=True),
        _money("diesel_amount", nullable=True),
        _money("toll_expense", nullable=True),
        _money("other_expense", nullable=True),
        _money("total_income", server_default="0"),
        _money("total_expense", server_default="0"),
        _money("profit", server_default="0"),
        sa.Column("mileage", sa.Numeric(8, 2), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("driver_advance >= 0", name="ck_trips_driver_advance_non_negative"),
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date", name="ck_trips_valid_range"
        ),
    )
    op.create_index("trips_status_idx", "trips", ["status"])
    op.create_index("trips_truck_idx", "trips", ["truck_id"])

    op.create_table(
        "journeys",
        sa.Column("journey_id", sa.String(length=36), primary_key=True),
        sa.Column(
            "trip_id",
            sa.String(length=36),
            sa.ForeignKey("trips.trip_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "client_id",
            sa.String(length=36),
            sa.ForeignKey("clients.client_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("client_name", sa.String(length=200), nullable=True),
        sa.Column("from_location", sa.String(length=120), nullable=False),
        sa.Column("to_location", sa.String(length=120), nullable=False),
        sa.Column("weight", sa.Numeric(10, 3), nullable=False),
        sa.Column("rate_per_ton", sa.Numeric(12, 2), nullable=False),
        _money("freight_amount"),
        _money("client_advance", server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("weight > 0", name="ck_journeys_weight_positive"),
        sa.CheckConstraint("rate_per_ton > 0", name="ck_journeys_rate_positive"),
        sa.CheckConstraint("client_advance >= 0", name="ck_journeys_advance_non_negative"),
    )
    op.create_index("journeys_trip_idx", "journeys", ["trip_id"])
    op.create_index("journeys_client_created_idx", "journeys", ["client_id", "created_at"])

    op.create_table(
        "bills",
        sa.Column("bill_id", sa.String(length=36), primary_key=True),
        sa.Column("bill_number", sa.String(length=20), nullable=False),
        sa.Column(
            "client_id",
            sa.String(length=36),
            sa.ForeignKey("clients.client_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("client_name", sa.String(length=200), nullable=False),
        sa.Column("client_gst", sa.String(length=15), nullable=True),
        sa.Column("client_address", sa.Text(), nullable=True),
        sa.Column("client_contact", sa.String(length=20), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("period_label", sa.String(length=60), nullable=False),
        sa.Column("is_inter_state", sa.Boolean(), nullable=False, server_default=sa.false()),
        _money("subtotal"),
        _money("cgst", server_default="0"),
        _money("sgst", server_default="0"),
        _money("igst", server_default="0"),
        _money("total_gst"),
        _money("total_advance", server_default="0"),
        _money("grand_total"),
        _money("net_payable"),
        sa.Column("status", BILL_STATUS, nullable=False, server_default="generated"),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("bill_number", name="uq_bills_bill_number"),
        sa.UniqueConstraint("client_id", "period_start", name="uq_bills_client_period"),
        sa.CheckConstraint("period_end >= period_start", name="ck_bills_valid_period"),
        sa.CheckConstraint(
            "(igst = 0) OR (cgst = 0 AND sgst = 0)", name="ck_bills_gst_exclusive"
        ),
    )
    op.create_index("bills_status_idx", "bills", ["status"])
    op.create_index("bills_client_generated_idx", "bills", ["client_id", "generated_at"])

    op.create_table(
        "bill_line_items",
        sa.Column("line_item_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "bill_id",
            sa.String(length=36),
            sa.ForeignKey("bills.bill_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("journey_id", sa.String(length=36), nullable=False),
        sa.Column("trip_id", sa.String(length=36), nullable=False),
        sa.Column("truck_number", sa.String(length=20), nullable=False),
        sa.Column("from_location", sa.String(length=120), nullable=False),
        sa.Column("to_location", sa.String(length=120), nullable=False),
        sa.Column("weight", sa.Numeric(10, 3), nullable=False),
        sa.Column("rate_per_ton", sa.Numeric(12, 2), nullable=False),
        _money("freight_amount"),
        _money("client_advance", server_default="0"),
        sa.Column("journey_date", sa.Date(), nullable=False),
    )
    op.create_index("bill_line_items_bill_idx", "bill_line_items", ["bill_id", "position"])

    op.create_table(
        "bill_sequences",
        sa.Column("sequence_key", sa.String(length=6), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "bill_payments",
        sa.Column("payment_id", sa.String(length=36), primary_key=True),
        sa.Column(
            "bill_id",
            sa.String(length=36),
            sa.ForeignKey("bills.bill_id", ondelete="CASCADE"),
            nullable=False,
        ),
        _money("amount"),
        sa.Column("mode", PAYMENT_MODE, nullable=False),
        sa.Column("paid_on", sa.Date(), nullable=False),
        sa.Column("reference", sa.String(length=120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_bill_payments_amount_positive"),
    )
    op.create_index("bill_payments_bill_idx", "bill_payments", ["bill_id", "recorded_at"])

    op.create_table(
        "operational_metric_events",
        sa.Column("event_id", sa.String(length=36), primary_key=True),
        sa.Column("event_type", sa.String(length=120), nullable=False),
        sa.Column("outcome", sa.String(length=32), nullable=False),
        sa.Column("duration_ms", sa.Numeric(14, 3), nullable=True),
        sa.Column("labels", sa.JSON(), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_operational_metric_events_event_type", "operational_metric_events", ["event_type"]
    )
    op.create_index(
        "ix_operational_metric_events_outcome", "operational_metric_events", ["outcome"]
    )
    op.create_index(
        "ix_operational_metric_events_created_at", "operational_metric_events", ["created_at"]
    )


def downgrade() -> None:
    op.drop_table("operational_metric_events")
    op.drop_table("bill_payments")
    op.drop_table("bill_sequences")
    op.drop_table("bill_line_items")
    op.drop_table("bills")
    op.drop_table("journeys")
    op.drop_table("trips")
    op.drop_table("clients")

    bind = op.get_bind()
    for enum_type in (PAYMENT_MODE, BILL_STATUS, TRIP_STATUS):
        enum_type.drop(bind, checkfirst=True)
