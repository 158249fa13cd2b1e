"""Budget tables - manual entries and recurring rules

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _common_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "house_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("houses.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("amount_cents", sa.Integer, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
    ]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "budget_entries",
        *_common_columns(),
        sa.Column("source", sa.String(20), nullable=False, server_default="MANUAL"),
        sa.Column("occurred_on", sa.DateTime(timezone=False), nullable=False, index=True),
        sa.Column("is_forecast", sa.Boolean, nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_table(
        "budget_recurring_entries",
        *_common_columns(),
        sa.Column("day_of_month", sa.Integer, nullable=True),
        sa.Column("start_month", sa.DateTime(timezone=False), nullable=False),
        sa.Column("end_month", sa.DateTime(timezone=False), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("budget_recurring_entries")
    op.drop_table("budget_entries")
