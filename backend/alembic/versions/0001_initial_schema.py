"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the lab console:
members, machines, reservations, inventory_items, checkout_records,
audit_logs.

Enum columns store the Python enum member names, matching SAEnum's
non-native storage.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- members ---
    op.create_table(
        "members",
        sa.Column("member_id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- machines ---
    op.create_table(
        "machines",
        sa.Column("machine_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("model", sa.String(150), nullable=False, server_default=""),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="idle"),
        sa.Column("job_member_id", sa.String(36), sa.ForeignKey("members.member_id"), nullable=True),
        sa.Column("job_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("job_estimated_minutes", sa.Integer, nullable=True),
        sa.Column("job_completion_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- reservations ---
    op.create_table(
        "reservations",
        sa.Column("reservation_id", sa.String(36), primary_key=True),
        sa.Column("machine_id", sa.String(36), sa.ForeignKey("machines.machine_id"), nullable=False),
        sa.Column("member_id", sa.String(36), sa.ForeignKey("members.member_id"), nullable=False),
        sa.Column("start_time_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("purpose", sa.String(500), nullable=False, server_default="General Use"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by_member_id", sa.String(36), sa.ForeignKey("members.member_id"), nullable=True),
        sa.Column("job_released_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_reservations_machine_start", "reservations", ["machine_id", "start_time_utc"])

    # --- inventory_items ---
    op.create_table(
        "inventory_items",
        sa.Column("item_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("available", sa.Integer, nullable=False, server_default="1"),
        sa.Column("condition", sa.String(20), nullable=False, server_default="excellent"),
        sa.Column("location", sa.String(150), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- checkout_records ---
    op.create_table(
        "checkout_records",
        sa.Column("checkout_id", sa.String(36), primary_key=True),
        sa.Column("item_id", sa.String(36), sa.ForeignKey("inventory_items.item_id"), nullable=False),
        sa.Column("member_id", sa.String(36), sa.ForeignKey("members.member_id"), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("checked_out_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("returned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("condition_on_checkout", sa.String(20), nullable=True),
        sa.Column("condition_on_return", sa.String(20), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
    )

    # --- audit_logs ---
    op.create_table(
        "audit_logs",
        sa.Column("log_id", sa.String(36), primary_key=True),
        sa.Column("action_type", sa.String(40), nullable=False),
        sa.Column("actor_id", sa.String(36), nullable=False, server_default="system"),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("details", sa.String(500), nullable=False, server_default=""),
        sa.Column("before_snapshot", sa.JSON, nullable=True),
        sa.Column("after_snapshot", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("checkout_records")
    op.drop_table("inventory_items")
    op.drop_index("ix_reservations_machine_start", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("machines")
    op.drop_table("members")
