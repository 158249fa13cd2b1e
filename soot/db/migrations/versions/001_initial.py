"""Initial schema - users, houses, tasks, calendar and notifications

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _house_fk() -> sa.Column:
    return sa.Column(
        "house_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("houses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def _optional_fk(name: str, table: str) -> sa.Column:
    return sa.Column(
        name, postgresql.UUID(as_uuid=True), sa.ForeignKey(f"{table}.id", ondelete="SET NULL"), nullable=True
    )


def upgrade() -> None:
    # Users & sign-in
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("image_url", sa.String(1000), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("calendar_feed_token", sa.String(64), unique=True, nullable=True, index=True),
        *_timestamps(),
    )
    op.create_table(
        "magic_link_tokens",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("token_hash", sa.String(64), unique=True, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # Houses & membership
    op.create_table(
        "houses",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("client_status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("is_onboarding_completed", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("icon_url", sa.String(1000), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "house_members",
        _id(),
        _house_fk(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("role", sa.String(20), nullable=False, server_default="MEMBER"),
        *_timestamps(),
    )
    op.create_table(
        "house_invites",
        _id(),
        _house_fk(),
        sa.Column("invited_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("token", sa.String(255), unique=True, nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # Reference lists
    for table in ("zones", "categories"):
        op.create_table(table, _id(), _house_fk(), sa.Column("name", sa.String(100), nullable=False), *_timestamps())
    op.create_table(
        "animals",
        _id(),
        _house_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("species", sa.String(100), nullable=True),
        sa.Column("birth_date", sa.Date, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "people",
        _id(),
        _house_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("relation", sa.String(100), nullable=True),
        sa.Column("birth_date", sa.Date, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "projects",
        _id(),
        _house_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=False), nullable=True),
        sa.Column("ends_at", sa.DateTime(timezone=False), nullable=True),
        sa.Column("image_url", sa.String(1000), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "equipment",
        _id(),
        _house_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("purchased_at", sa.DateTime(timezone=False), nullable=True),
        sa.Column("warranty_ends_at", sa.DateTime(timezone=False), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("image_url", sa.String(1000), nullable=True),
        *_timestamps(),
    )

    # Tasks
    op.create_table(
        "tasks",
        _id(),
        _house_fk(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="TODO"),
        sa.Column("due_date", sa.DateTime(timezone=False), nullable=True),
        sa.Column("reminder_offset_days", sa.Integer, nullable=True),
        sa.Column("is_template", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("recurrence_unit", sa.String(20), nullable=True),
        sa.Column("recurrence_interval", sa.Integer, nullable=True),
        sa.Column(
            "parent_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        _optional_fk("assignee_id", "users"),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        _optional_fk("zone_id", "zones"),
        _optional_fk("category_id", "categories"),
        _optional_fk("project_id", "projects"),
        _optional_fk("equipment_id", "equipment"),
        _optional_fk("animal_id", "animals"),
        _optional_fk("person_id", "people"),
        sa.Column("image_url", sa.String(1000), nullable=True),
        sa.Column("bypass_quiet_hours", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("bypass_schedule", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("escalation_enabled", sa.Boolean, nullable=True),
        sa.Column("escalation_delay_hours", sa.Integer, nullable=True),
        *_timestamps(),
    )

    # Important dates
    op.create_table(
        "important_dates",
        _id(),
        _house_fk(),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(120), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="OTHER"),
        sa.Column("is_recurring_yearly", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )

    # Notifications
    op.create_table(
        "notifications",
        _id(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _house_fk(),
        sa.Column(
            "task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("body", sa.Text, nullable=True),
        sa.Column("link_url", sa.String(1000), nullable=True),
        sa.Column("dedupe_key", sa.String(255), unique=True, nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "notification_settings",
        _id(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("quiet_hours_enabled", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("quiet_hours_start_minutes", sa.Integer, nullable=False, server_default=sa.text("1320")),
        sa.Column("quiet_hours_end_minutes", sa.Integer, nullable=False, server_default=sa.text("420")),
        sa.Column("schedule_enabled", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("schedule_days", postgresql.JSONB, nullable=True),
        sa.Column("schedule_start_minutes", sa.Integer, nullable=False, server_default=sa.text("480")),
        sa.Column("schedule_end_minutes", sa.Integer, nullable=False, server_default=sa.text("1080")),
        sa.Column("escalation_enabled", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("escalation_delay_hours", sa.Integer, nullable=False, server_default=sa.text("24")),
        *_timestamps(),
    )

    # Illustration jobs
    op.create_table(
        "image_jobs",
        _id(),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("owner", sa.String(255), nullable=False),
        sa.Column("prompt", sa.Text, nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error", sa.Text, nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    for table in (
        "image_jobs",
        "notification_settings",
        "notifications",
        "important_dates",
        "tasks",
        "equipment",
        "projects",
        "people",
        "animals",
        "categories",
        "zones",
        "house_invites",
        "house_members",
        "houses",
        "magic_link_tokens",
        "users",
    ):
        op.drop_table(table)
