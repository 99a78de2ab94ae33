"""Initial schema: events, registrations, tickets, check_ins with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Events table (admin-owned; this service only bumps `version`)
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cost", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("status", sa.String(50), nullable=False, server_default=sa.text("'scheduled'")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("capacity >= 0", name="check_event_capacity_non_negative"),
        sa.CheckConstraint("cost >= 0", name="check_event_cost_non_negative"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'ongoing', 'completed', 'cancelled')",
            name="check_event_status",
        ),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # Listing orders by start time (upcoming first)
    op.create_index("ix_events_start_time", "events", ["start_time"])

    # Registrations table
    op.create_table(
        "registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("instance", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # Also serves the (event_id, user_email) lookup of every registration request
        sa.UniqueConstraint("event_id", "user_email", "instance", name="uq_registration_event_user_instance"),
        sa.CheckConstraint("instance >= 0", name="check_registration_instance_non_negative"),
        sa.CheckConstraint("status IN ('confirmed')", name="check_registration_status"),
        sa.CheckConstraint("payment_status IN ('paid', 'pending')", name="check_registration_payment_status"),
    )
    op.create_index("ix_registrations_id", "registrations", ["id"])
    # Capacity count runs on every registration
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])

    # Tickets table: one per registration
    op.create_table(
        "tickets",
        sa.Column(
            "registration_id",
            sa.Integer(),
            sa.ForeignKey("registrations.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("instance", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("payload", sa.String(512), nullable=False),
        sa.Column("image", sa.LargeBinary(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("payload", name="tickets_payload_key"),
    )
    op.create_index("ix_tickets_event_user", "tickets", ["event_id", "user_email"])

    # Check-ins table: a row exists once the attendee has been admitted
    op.create_table(
        "check_ins",
        sa.Column(
            "registration_id",
            sa.Integer(),
            sa.ForeignKey("registrations.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("method", sa.String(20), nullable=False, server_default=sa.text("'qr'")),
    )


def downgrade() -> None:
    op.drop_table("check_ins")
    op.drop_table("tickets")
    op.drop_table("registrations")
    op.drop_table("events")
