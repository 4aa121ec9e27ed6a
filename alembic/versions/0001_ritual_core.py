"""ritual core tables

Revision ID: 0001_ritual_core
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_ritual_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "daily_recommendation",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_recommendation_user_date"),
    )
    op.create_index("ix_daily_recommendation_user_id", "daily_recommendation", ["user_id"], unique=False)

    op.create_table(
        "scheduled_notification",
        sa.Column("id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_scheduled_notification_user_id", "scheduled_notification", ["user_id"], unique=False)

    op.create_table(
        "notification_preferences",
        sa.Column("user_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("preferred_time", sa.Time(), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("enable_weekends", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("enable_quick_options", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("confidence_note_style", sa.String(length=32), nullable=False, server_default="encouraging"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "pending_notification",
        sa.Column("user_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("queued_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("pending_notification")
    op.drop_table("notification_preferences")
    op.drop_index("ix_scheduled_notification_user_id", table_name="scheduled_notification")
    op.drop_table("scheduled_notification")
    op.drop_index("ix_daily_recommendation_user_id", table_name="daily_recommendation")
    op.drop_table("daily_recommendation")
