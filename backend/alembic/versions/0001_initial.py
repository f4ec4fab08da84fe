"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

from slotbook.models.tables import UTCDateTime

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_STATUSES_SQL = "status IN ('PENDING', 'CONFIRMED')"


def upgrade():
    op.create_table(
        "businesses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False, unique=True),
        sa.Column("timezone", sa.Text()),
        sa.Column("phone", sa.Text()),
        sa.Column("address", sa.Text()),
        sa.Column("email", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("auto_confirm", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("cancel_window_hours", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("min_lead_time_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", UTCDateTime(), nullable=False),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("buffer_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("price", sa.Numeric(10, 2)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint("duration_minutes >= 5", name="ck_services_duration"),
        sa.CheckConstraint("buffer_minutes >= 0", name="ck_services_buffer"),
    )
    op.create_index("ix_services_business_id", "services", ["business_id"])

    op.create_table(
        "working_hours",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Text(), nullable=False),
        sa.Column("end_time", sa.Text(), nullable=False),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_working_hours_day"),
    )
    op.create_index("ix_working_hours_business_day", "working_hours", ["business_id", "day_of_week"])

    op.create_table(
        "closures",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("start_time", sa.Text()),
        sa.Column("end_time", sa.Text()),
        sa.Column("note", sa.Text()),
    )
    op.create_index("ix_closures_business_date", "closures", ["business_id", "date"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("start_at", UTCDateTime(), nullable=False),
        sa.Column("end_at", UTCDateTime(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("source", sa.Text(), nullable=False, server_default=sa.text("'public'")),
        sa.Column("customer_name", sa.Text(), nullable=False),
        sa.Column("customer_phone", sa.Text(), nullable=False),
        sa.Column("customer_email", sa.Text()),
        sa.Column("note", sa.Text()),
        sa.Column("manage_token_hash", sa.Text(), unique=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
    )
    op.create_index("ix_bookings_business_start", "bookings", ["business_id", "start_at"])
    op.create_index(
        "uq_bookings_active_slot",
        "bookings",
        ["business_id", "service_id", "start_at"],
        unique=True,
        sqlite_where=sa.text(ACTIVE_STATUSES_SQL),
        postgresql_where=sa.text(ACTIVE_STATUSES_SQL),
    )


def downgrade():
    op.drop_index("uq_bookings_active_slot", table_name="bookings")
    op.drop_index("ix_bookings_business_start", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_closures_business_date", table_name="closures")
    op.drop_table("closures")
    op.drop_index("ix_working_hours_business_day", table_name="working_hours")
    op.drop_table("working_hours")
    op.drop_index("ix_services_business_id", table_name="services")
    op.drop_table("services")
    op.drop_table("businesses")
