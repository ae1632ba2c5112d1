"""Initial schema: events and bookings, plus the two sample events.

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
    events = op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("total_seats", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("total_seats > 0", name="check_total_seats_positive"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "event_id",
            sa.Integer(),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # One booking per user per event; reservation relies on this as the final arbiter
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_user_booking"),
    )
    op.create_index("idx_bookings_event_user", "bookings", ["event_id", "user_id"])
    # Serves the "my bookings" listing
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])

    op.bulk_insert(
        events,
        [
            {"name": "Концерт рок-группы", "total_seats": 100},
            {"name": "Театральная премьера", "total_seats": 50},
        ],
    )


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("events")
