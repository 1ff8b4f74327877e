from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("communication_preferences", sa.JSON(), nullable=True),
        sa.Column("stripe_customer_id", sa.String(length=64), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=64), nullable=True),
        sa.Column("stripe_price_id", sa.String(length=64), nullable=True),
        sa.Column("subscription_tier", sa.String(length=20), nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(length=20), nullable=True),
        sa.Column("subscription_period", sa.String(length=10), nullable=True),
        sa.Column("subscription_start_date", sa.Date(), nullable=True),
        sa.Column("subscription_end_date", sa.Date(), nullable=True),
        sa.Column("cancel_at_period_end", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_user_profiles_stripe_customer_id", "user_profiles", ["stripe_customer_id"])
    op.create_index("ix_user_profiles_stripe_subscription_id", "user_profiles", ["stripe_subscription_id"])

    op.create_table(
        "reminders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("user_profiles.user_id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reminder_type", sa.String(length=60), nullable=True),
        sa.Column("time", sa.String(length=5), nullable=True),
        sa.Column("days_of_week", sa.JSON(), nullable=True),
        sa.Column("frequency", sa.String(length=20), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("channel_override", sa.String(length=10), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_reminders_user_id", "reminders", ["user_id"])
    op.create_index("ix_reminders_is_active", "reminders", ["is_active"])

    op.create_table(
        "reminder_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reminder_id", sa.Integer(), sa.ForeignKey("reminders.id"), nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("user_profiles.user_id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(length=5), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="sent"),
        sa.Column("method", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("reminder_id", "date", "status", name="uq_reminder_log_per_day"),
    )
    op.create_index("ix_reminder_logs_reminder_id", "reminder_logs", ["reminder_id"])
    op.create_index("ix_reminder_logs_user_id", "reminder_logs", ["user_id"])

    for table, columns in (
        (
            "sleep_logs",
            [sa.Column("hours", sa.Float(), nullable=True), sa.Column("quality", sa.Integer(), nullable=True)],
        ),
        (
            "mood_logs",
            [sa.Column("mood", sa.String(length=40), nullable=True), sa.Column("energy_level", sa.Integer(), nullable=True)],
        ),
        (
            "food_logs",
            [sa.Column("meal_type", sa.String(length=20), nullable=True), sa.Column("description", sa.Text(), nullable=True)],
        ),
        (
            "symptoms",
            [sa.Column("symptom", sa.String(length=80), nullable=True), sa.Column("severity", sa.Integer(), nullable=True)],
        ),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.String(length=64), sa.ForeignKey("user_profiles.user_id"), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            *columns,
        )
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])
        op.create_index(f"ix_{table}_date", table, ["date"])


def downgrade() -> None:
    for table in ("symptoms", "food_logs", "mood_logs", "sleep_logs"):
        op.drop_table(table)
    op.drop_table("reminder_logs")
    op.drop_table("reminders")
    op.drop_table("user_profiles")
