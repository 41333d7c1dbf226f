"""create kpi thresholds

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 15:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "kpi_thresholds",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.String(length=255), nullable=False),
        sa.Column("kpi_key", sa.String(length=128), nullable=False),
        sa.Column("target_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("warning_threshold", sa.Float(), nullable=False, server_default="0"),
        sa.Column("failure_threshold", sa.Float(), nullable=False, server_default="0"),
        sa.Column("threshold_type", sa.String(length=1), nullable=False, server_default=">",
                  comment="'>' when higher is healthier, '<' when lower is"),
        sa.Column("alert_priority", sa.String(length=16), nullable=False, server_default="Medium"),
        sa.Column("alert_frequency", sa.String(length=32), nullable=False, server_default="Daily"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_kpi_thresholds"),
        sa.UniqueConstraint("tenant_id", "kpi_key", name="uq_kpi_thresholds_tenant_kpi_key"),
    )
    op.create_index("ix_kpi_thresholds_tenant_id", "kpi_thresholds", ["tenant_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_kpi_thresholds_tenant_id", table_name="kpi_thresholds")
    op.drop_table("kpi_thresholds")
