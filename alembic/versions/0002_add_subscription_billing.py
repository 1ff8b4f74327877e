"""add subscription tier catalog, history and webhook events

Revision ID: 0002_add_subscription_billing
Revises: 0001_initial
Create Date: 2025-09-02
"""
from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0002_add_subscription_billing"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:  # noqa: D401
    op.create_table(
        "subscription_tiers",
        sa.Column("tier_code", sa.String(length=20), primary_key=True),
        sa.Column("tier_name", sa.String(length=60), nullable=False),
        sa.Column("price_monthly", sa.Numeric(scale=2), nullable=True),
        sa.Column("price_yearly", sa.Numeric(scale=2), nullable=True),
        sa.Column("stripe_price_id_monthly", sa.String(length=64), nullable=True),
        sa.Column("stripe_price_id_yearly", sa.String(length=64), nullable=True),
        sa.Column("features", sa.JSON(), nullable=True),
    )
    op.create_table(
        "subscription_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("user_profiles.user_id"), nullable=False),
        sa.Column("event_type", sa.String(length=40), nullable=False),
        sa.Column("from_tier", sa.String(length=20), nullable=True),
        sa.Column("to_tier", sa.String(length=20), nullable=True),
        sa.Column("amount", sa.Numeric(scale=2), nullable=True),
        sa.Column("period", sa.String(length=10), nullable=True),
        sa.Column("stripe_event_id", sa.String(length=120), nullable=True),
        sa.Column("stripe_invoice_id", sa.String(length=120), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_subscription_history_user_id", "subscription_history", ["user_id"])
    op.create_table(
        "webhook_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider", sa.String(length=40), nullable=False),
        sa.Column("external_id", sa.String(length=120), nullable=False),
        sa.Column("event_type", sa.String(length=80), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_unique_constraint(
        "uq_webhook_provider_external",
        "webhook_events",
        ["provider", "external_id"],
    )


def downgrade() -> None:  # noqa: D401
    op.drop_constraint("uq_webhook_provider_external", "webhook_events", type_="unique")
    op.drop_table("webhook_events")
    op.drop_index("ix_subscription_history_user_id", table_name="subscription_history")
    op.drop_table("subscription_history")
    op.drop_table("subscription_tiers")
