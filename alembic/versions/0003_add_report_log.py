"""add report log

Revision ID: 0003_add_report_log
Revises: 0002_add_subscription_billing
Create Date: 2025-10-06
"""
from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0003_add_report_log"
down_revision = "0002_add_subscription_billing"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "report_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("user_profiles.user_id"), nullable=False),
        sa.Column("frequency", sa.String(length=10), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("method", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "frequency", "date", name="uq_report_log_per_day"),
    )
    op.create_index("ix_report_logs_user_id", "report_logs", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_report_logs_user_id", table_name="report_logs")
    op.drop_table("report_logs")
